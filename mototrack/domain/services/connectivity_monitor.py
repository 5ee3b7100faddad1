"""
Surveillance de la connectivité en arrière-plan.

Le worker tourne comme asyncio.Task : il sonde le service distant à
intervalle régulier et transmet le résultat au SyncReconciler. Tant que la
connexion est établie, il relance un sweep à chaque cycle pour les rides
dont le backoff est écoulé.
"""
import asyncio
import logging
from typing import Optional

from mototrack.domain.entities.ride import SyncReport
from mototrack.domain.services.remote_store import RemoteRideStore
from mototrack.domain.services.sync_reconciler import SyncReconciler

logger = logging.getLogger(__name__)

# Pause apres une erreur inattendue (secondes)
ERROR_WAIT = 30


class ConnectivityMonitor:
    """Sonde périodique du service distant, alimente la machine à états de synchro."""

    def __init__(
        self,
        reconciler: SyncReconciler,
        remote_store: RemoteRideStore,
        interval_s: float = 15.0,
        sweep_while_online: bool = True,
    ):
        self.reconciler = reconciler
        self.remote_store = remote_store
        self.interval_s = interval_s
        self.sweep_while_online = sweep_while_online
        self.is_running = False
        self._task: Optional[asyncio.Task] = None
        self._wake_event = asyncio.Event()

    # ------------------------------------------------------------------
    # Lifecycle du worker
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Demarre le worker comme asyncio.Task (idempotent)."""
        if self._task and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run_loop())
        logger.info("Surveillance de connectivité démarrée")

    async def stop(self) -> None:
        """Arrete le worker proprement."""
        self.is_running = False
        self._wake_event.set()
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Surveillance de connectivité arrêtée")

    def notify(self) -> None:
        """Force une sonde immédiate (ex : événement réseau de la plateforme)."""
        self._wake_event.set()

    # ------------------------------------------------------------------
    # Boucle principale
    # ------------------------------------------------------------------

    async def check_once(self) -> Optional[SyncReport]:
        """Une sonde + transition d'état. Retourne le rapport si un sweep a eu lieu."""
        online = await asyncio.to_thread(self.remote_store.ping)
        was_online = self.reconciler.is_online
        report = await asyncio.to_thread(self.reconciler.set_online, online)
        if report is None and online and was_online and self.sweep_while_online:
            report = await asyncio.to_thread(self.reconciler.sweep)
        return report

    async def _run_loop(self) -> None:
        self.is_running = True
        while self.is_running:
            try:
                await self.check_once()
                self._wake_event.clear()
                try:
                    await asyncio.wait_for(self._wake_event.wait(), timeout=self.interval_s)
                except asyncio.TimeoutError:
                    pass  # Timeout normal, on sonde a nouveau
            except asyncio.CancelledError:
                logger.info("Surveillance de connectivité annulée")
                break
            except Exception as e:
                logger.error(f"Erreur dans la surveillance de connectivité: {e}")
                await asyncio.sleep(ERROR_WAIT)
        self.is_running = False
