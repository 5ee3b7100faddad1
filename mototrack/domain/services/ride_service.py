"""
Service des rides : écriture locale systématique, service distant quand la
connexion le permet. Toutes les rides exposées portent leur id local ;
le remote_id n'est lu que depuis la ride locale.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from mototrack.core.errors import RemoteStoreError
from mototrack.domain.entities.ride import Ride, RideCreate, RideUpdate
from mototrack.domain.services.gpx_export import gpx_filename, ride_to_gpx
from mototrack.domain.services.local_store import LocalStore
from mototrack.domain.services.remote_store import RemoteRideStore
from mototrack.domain.services.sync_reconciler import SyncReconciler

logger = logging.getLogger(__name__)


class RideService:
    """Opérations sur les rides exposées à l'UI"""

    def __init__(self, local_store: LocalStore, remote_store: RemoteRideStore, reconciler: SyncReconciler):
        self.local_store = local_store
        self.remote_store = remote_store
        self.reconciler = reconciler

    @property
    def is_online(self) -> bool:
        return self.reconciler.is_online

    def list_rides(self) -> List[Ride]:
        """
        Rides de la base locale, les plus récentes d'abord, identifiées par
        leur id local. En ligne, les enregistrements distants sont d'abord
        rapprochés des rides locales (par client_id) et mis en cache.
        """
        if self.is_online:
            try:
                remote_rides = self.remote_store.list_rides()
            except RemoteStoreError as e:
                logger.error(f"Error fetching rides: {e}")
            else:
                for remote_ride in remote_rides:
                    self.local_store.cache_remote_ride(remote_ride)
        return self.local_store.list_rides()

    def get_ride(self, ride_id: int) -> Optional[Ride]:
        """Ride locale ; rafraîchie depuis le service distant si son remote_id est connu."""
        ride = self.local_store.get_ride(ride_id)
        if ride is None or ride.remote_id is None or not self.is_online:
            return ride
        try:
            remote_ride = self.remote_store.get_ride(ride.remote_id)
        except RemoteStoreError as e:
            logger.error(f"Error fetching ride {ride_id}: {e}")
            return ride
        if remote_ride is None:
            return ride
        return self.local_store.cache_remote_ride(remote_ride)

    def save_ride(self, ride_data: RideCreate) -> Ride:
        """Toujours en local d'abord ; envoi immédiat si en ligne."""
        ride = self.local_store.create_ride(ride_data)
        if self.is_online:
            # Un échec laisse la ride exactement comme une ride créée hors-ligne
            self.reconciler.push(ride, record_failure=False)
        return ride

    def update_ride(self, ride_id: int, changes: RideUpdate) -> Optional[Ride]:
        values: Dict[str, Any] = changes.model_dump(exclude_unset=True)
        ride = self.local_store.update_ride(ride_id, values)
        if ride is None:
            return None

        if self.is_online and ride.remote_id is not None and values:
            try:
                self.remote_store.update_ride(ride.remote_id, values)
            except RemoteStoreError as e:
                logger.error(f"Failed to update ride {ride_id} on server: {e}")
        return ride

    def delete_ride(self, ride_id: int) -> bool:
        ride = self.local_store.get_ride(ride_id)
        if ride is None:
            return False
        self.local_store.delete_ride(ride_id)

        if self.is_online and ride.remote_id is not None:
            try:
                self.remote_store.delete_ride(ride.remote_id)
            except RemoteStoreError as e:
                logger.error(f"Failed to delete ride {ride_id} from server: {e}")
        return True

    def export_gpx(self, ride_id: int) -> Optional[Tuple[str, str]]:
        """Retourne (nom de fichier, contenu GPX) ou None si la ride est introuvable."""
        ride = self.get_ride(ride_id)
        if ride is None:
            return None
        return gpx_filename(ride), ride_to_gpx(ride)
