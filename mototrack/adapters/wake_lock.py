"""
Verrou anti-veille : empêche l'appareil de s'endormir pendant l'enregistrement
"""
import logging
import shutil
import subprocess
from typing import Protocol

logger = logging.getLogger(__name__)


class WakeLock(Protocol):
    def acquire(self) -> None: ...

    def release(self) -> None: ...


class NullWakeLock:
    """Aucun verrou (plateforme sans support ou tests)."""

    def __init__(self):
        self.held = False

    def acquire(self) -> None:
        self.held = True

    def release(self) -> None:
        self.held = False


class TermuxWakeLock:
    """Verrou via termux-api (Android)."""

    def __init__(self, acquire_cmd: str = "termux-wake-lock", release_cmd: str = "termux-wake-unlock"):
        self.acquire_cmd = acquire_cmd
        self.release_cmd = release_cmd
        self.held = False

    @staticmethod
    def is_available() -> bool:
        return shutil.which("termux-wake-lock") is not None

    def acquire(self) -> None:
        try:
            subprocess.run([self.acquire_cmd], check=True, capture_output=True, timeout=5)
            self.held = True
            logger.info("Wakelock acquis")
        except (OSError, subprocess.SubprocessError) as e:
            # Non bloquant : la session continue sans verrou
            logger.warning(f"Impossible d'acquérir le wakelock: {e}")

    def release(self) -> None:
        if not self.held:
            return
        try:
            subprocess.run([self.release_cmd], check=False, capture_output=True, timeout=5)
            logger.info("Wakelock libéré")
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Impossible de libérer le wakelock: {e}")
        finally:
            self.held = False
