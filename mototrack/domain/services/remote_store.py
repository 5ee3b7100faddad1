"""
Client du service REST des rides (Remote Store).

  GET    /api/rides          liste
  GET    /api/rides/:id      lecture (404 si absente)
  POST   /api/rides          création (le serveur positionne isUploaded=true)
  PATCH  /api/rides/:id      mise à jour partielle
  DELETE /api/rides/:id      204 si supprimée, 404 si absente

Les corps JSON utilisent des noms de champs camelCase. Un 400 devient
RemoteValidationError, toute autre réponse non-2xx ou erreur de transport
devient RemoteStoreError.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

import requests

from mototrack.core.errors import RemoteStoreError, RemoteValidationError
from mototrack.domain.entities.ride import Ride

logger = logging.getLogger(__name__)

RIDES_PATH = "/api/rides"

# Champs envoyés à la création (id et isUploaded sont gérés par le serveur)
PAYLOAD_FIELDS = [
    "client_id", "title", "description", "user_id", "distance", "duration",
    "start_time", "end_time", "max_speed", "avg_speed", "elevation_gain",
    "start_location", "end_location", "route",
]


def to_camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


def _format_datetime(value: datetime) -> str:
    """ISO 8601 UTC avec suffixe Z"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_float(value: Any) -> Optional[float]:
    # Les colonnes numeric du serveur peuvent revenir sous forme de chaînes
    return float(value) if value is not None else None


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_datetime(value)
    if isinstance(value, UUID):
        return str(value)
    return value


def ride_to_payload(ride: Ride) -> Dict[str, Any]:
    """Convertit une ride locale en corps JSON de création."""
    return {to_camel(field): _encode_value(getattr(ride, field)) for field in PAYLOAD_FIELDS}


def changes_to_payload(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Convertit une mise à jour partielle (snake_case) en corps JSON de PATCH."""
    return {to_camel(key): _encode_value(value) for key, value in changes.items()}


def ride_from_payload(data: Dict[str, Any]) -> Ride:
    """Construit une Ride (non persistée localement) depuis un enregistrement distant."""
    client_id = data.get("clientId")
    remote_id = data.get("id")
    return Ride(
        id=remote_id,
        remote_id=remote_id,
        client_id=UUID(str(client_id)) if client_id else uuid4(),
        title=data.get("title") or "",
        description=data.get("description"),
        user_id=data.get("userId"),
        distance=_parse_float(data.get("distance")) or 0.0,
        duration=int(data.get("duration") or 0),
        start_time=_parse_datetime(data.get("startTime")),
        end_time=_parse_datetime(data.get("endTime")),
        max_speed=_parse_float(data.get("maxSpeed")) or 0.0,
        avg_speed=_parse_float(data.get("avgSpeed")) or 0.0,
        elevation_gain=_parse_float(data.get("elevationGain")),
        start_location=data.get("startLocation"),
        end_location=data.get("endLocation"),
        route=data.get("route") or [],
        is_uploaded=bool(data.get("isUploaded", True)),
    )


class RemoteRideStore:
    """Client HTTP du service distant des rides"""

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RemoteStoreError(f"{method} {path} impossible: {e}") from e

    @staticmethod
    def _raise_for_status(response: requests.Response, action: str) -> None:
        if response.status_code < 400:
            return
        try:
            message = response.json().get("message")
        except (ValueError, AttributeError):
            message = None
        detail = message or response.reason or f"HTTP {response.status_code}"
        if response.status_code == 400:
            raise RemoteValidationError(f"{action}: {detail}", status_code=400)
        raise RemoteStoreError(f"{action}: {detail}", status_code=response.status_code)

    def ping(self) -> bool:
        """Le service répond-il ? Toute réponse HTTP compte comme joignable."""
        try:
            self.session.head(self.base_url, timeout=self.timeout)
            return True
        except requests.RequestException as e:
            logger.debug(f"Service distant injoignable: {e}")
            return False

    def list_rides(self) -> List[Ride]:
        response = self._request("GET", RIDES_PATH)
        self._raise_for_status(response, "Failed to fetch rides")
        return [ride_from_payload(item) for item in response.json()]

    def get_ride(self, remote_id: int) -> Optional[Ride]:
        response = self._request("GET", f"{RIDES_PATH}/{remote_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, f"Failed to fetch ride {remote_id}")
        return ride_from_payload(response.json())

    def create_ride(self, ride: Ride) -> Ride:
        """Crée la ride côté serveur et retourne l'enregistrement distant."""
        response = self._request("POST", RIDES_PATH, json=ride_to_payload(ride))
        self._raise_for_status(response, "Failed to create ride")
        return ride_from_payload(response.json())

    def update_ride(self, remote_id: int, changes: Dict[str, Any]) -> Optional[Ride]:
        response = self._request("PATCH", f"{RIDES_PATH}/{remote_id}", json=changes_to_payload(changes))
        if response.status_code == 404:
            return None
        self._raise_for_status(response, f"Failed to update ride {remote_id}")
        return ride_from_payload(response.json())

    def delete_ride(self, remote_id: int) -> bool:
        response = self._request("DELETE", f"{RIDES_PATH}/{remote_id}")
        if response.status_code == 404:
            return False
        self._raise_for_status(response, f"Failed to delete ride {remote_id}")
        return True
