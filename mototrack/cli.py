"""
Interface en ligne de commande MotoTrack
Rejouer une trace GPX comme une session d'enregistrement, lister, synchroniser
et exporter les rides, modifier les préférences.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mototrack.adapters.location_providers import GpxReplayLocationProvider
from mototrack.adapters.wake_lock import NullWakeLock, TermuxWakeLock
from mototrack.context import AppContext
from mototrack.core.errors import MotoTrackError
from mototrack.core.logging_config import configure_logging, init_sentry
from mototrack.core.settings import get_settings
from mototrack.domain.entities.ride import SyncReport
from mototrack.domain.entities.user_settings import GpsAccuracy, MapStyle, Units
from mototrack.domain.services.formatting import (
    format_date,
    format_distance,
    format_duration,
    format_elevation,
    format_speed,
)
from mototrack.domain.services.geolocation_sampler import SamplerConfig
from mototrack.domain.services.ride_recorder import RideRecorder

logger = logging.getLogger(__name__)


def _probe(ctx: AppContext) -> Optional[SyncReport]:
    """Sonde le service distant ; une transition vers ONLINE lance un sweep."""
    return asyncio.run(ctx.connectivity_monitor().check_once())


def _go_online(ctx: AppContext) -> None:
    report = _probe(ctx)
    if not ctx.reconciler.is_online:
        print("Service distant injoignable, mode hors-ligne")
    elif report and report.total:
        print(f"Synchronisation: {report.uploaded}/{report.total} ride(s) envoyée(s)")


def cmd_record(ctx: AppContext, args: argparse.Namespace) -> int:
    if not Path(args.gpx_file).exists():
        print(f"Erreur: le fichier {args.gpx_file} n'existe pas")
        return 1

    _go_online(ctx)
    provider = GpxReplayLocationProvider.from_file(args.gpx_file)
    wake_lock = TermuxWakeLock() if TermuxWakeLock.is_available() else NullWakeLock()
    config = SamplerConfig.from_settings(ctx.settings_service.current, ctx.settings)

    recorder = RideRecorder(ctx.ride_service, provider, wake_lock=wake_lock, config=config)
    recorder.start()
    provider.replay()
    result = recorder.stop()

    if result.nothing_recorded:
        print("Aucun point accepté, rien n'a été enregistré")
        return 0

    ride = result.ride
    units = ctx.settings_service.current.units
    status = "synchronisée" if ride.is_uploaded else "en attente de synchronisation"
    print(f"Ride {ride.id} enregistrée ({status})")
    print(f"  Distance : {format_distance(ride.distance, units)}")
    print(f"  Durée    : {format_duration(ride.duration)}")
    print(f"  Moyenne  : {format_speed(ride.avg_speed, units)}")
    print(f"  Max      : {format_speed(ride.max_speed, units)}")
    if ride.elevation_gain is not None:
        print(f"  D+       : {format_elevation(ride.elevation_gain, units)}")
    return 0


def cmd_list(ctx: AppContext, args: argparse.Namespace) -> int:
    """Liste les rides par id local, seul id accepté par export et sync --retry."""
    if not args.offline:
        _go_online(ctx)
    rides = ctx.ride_service.list_rides()
    if not rides:
        print("Aucune ride")
        return 0

    units = ctx.settings_service.current.units
    for ride in rides:
        marker = " " if ride.is_uploaded else "*"
        print(
            f"{marker} {ride.id:>4}  {format_date(ride.start_time):<13} {ride.title:<30} "
            f"{format_distance(ride.distance, units):>9}  {format_duration(ride.duration):>7}"
        )
    return 0


def cmd_sync(ctx: AppContext, args: argparse.Namespace) -> int:
    if args.retry is not None:
        _probe(ctx)
        ride = ctx.reconciler.retry_ride(args.retry)
        if ride is None:
            print(f"Ride {args.retry} introuvable")
            return 1
        print(f"Ride {ride.id} remise en file ({'synchronisée' if ride.is_uploaded else 'en attente'})")
        return 0

    if args.review:
        rides = ctx.reconciler.rides_needing_review()
        for ride in rides:
            print(f"{ride.id:>4}  {ride.title:<30} {ride.sync_attempts} tentative(s): {ride.last_sync_error}")
        if not rides:
            print("Aucune ride en attente de revue")
        return 0

    report = _probe(ctx)
    if not ctx.reconciler.is_online:
        print("Service distant injoignable, synchronisation reportée")
        return 1
    if report is None:
        report = ctx.reconciler.sweep()
    print(
        f"{report.uploaded} envoyée(s), {report.failed} en échec, {report.gave_up} abandonnée(s), "
        f"{report.skipped} en attente"
    )
    return 0 if not report.failed and not report.gave_up else 1


def cmd_export(ctx: AppContext, args: argparse.Namespace) -> int:
    if not args.offline:
        _go_online(ctx)
    exported = ctx.ride_service.export_gpx(args.ride_id)
    if exported is None:
        print(f"Ride {args.ride_id} introuvable")
        return 1

    filename, content = exported
    output = Path(args.output or filename)
    output.write_text(content, encoding="utf-8")
    print(f"Export GPX: {output}")
    return 0


def cmd_settings(ctx: AppContext, args: argparse.Namespace) -> int:
    changes = {
        key: value for key, value in {
            "units": args.units,
            "gps_accuracy": args.gps_accuracy,
            "map_style": args.map_style,
            "background_tracking": args.background_tracking,
        }.items() if value is not None
    }
    current = ctx.settings_service.update(**changes) if changes else ctx.settings_service.current
    for key, value in current.model_dump().items():
        print(f"{key}: {getattr(value, 'value', value)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mototrack",
        description="Suivi de rides GPS avec stockage local et synchronisation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemples d'utilisation:
  python -m mototrack record sortie.gpx
  python -m mototrack list
  python -m mototrack export 3 -o sortie.gpx
  python -m mototrack settings --units metric
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Afficher les logs détaillés')
    subparsers = parser.add_subparsers(dest="command", required=True)

    record = subparsers.add_parser("record", help="Rejouer une trace GPX et enregistrer la ride")
    record.add_argument("gpx_file", help="Fichier GPX à rejouer")
    record.set_defaults(handler=cmd_record)

    list_parser = subparsers.add_parser("list", help="Lister les rides")
    list_parser.add_argument("--offline", action="store_true", help="Ne pas interroger le service distant")
    list_parser.set_defaults(handler=cmd_list)

    sync = subparsers.add_parser("sync", help="Synchroniser les rides locales")
    sync.add_argument("--review", action="store_true", help="Lister les rides abandonnées")
    sync.add_argument("--retry", type=int, metavar="RIDE_ID", help="Relancer une ride abandonnée (id local)")
    sync.set_defaults(handler=cmd_sync)

    export = subparsers.add_parser("export", help="Exporter une ride en GPX")
    export.add_argument("ride_id", type=int, help="Id local affiché par la commande list")
    export.add_argument("-o", "--output", help="Fichier de sortie (défaut: ride-AAAA-MM-JJ.gpx)")
    export.add_argument("--offline", action="store_true", help="Ne pas interroger le service distant")
    export.set_defaults(handler=cmd_export)

    settings = subparsers.add_parser("settings", help="Afficher ou modifier les préférences")
    settings.add_argument("--units", choices=[u.value for u in Units])
    settings.add_argument("--gps-accuracy", choices=[g.value for g in GpsAccuracy])
    settings.add_argument("--map-style", choices=[m.value for m in MapStyle])
    settings.add_argument(
        "--background-tracking", action=argparse.BooleanOptionalAction, default=None
    )
    settings.set_defaults(handler=cmd_settings)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Point d'entrée principal du CLI"""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(settings)
    init_sentry(settings)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        with AppContext.create(settings) as ctx:
            return args.handler(ctx, args)
    except (MotoTrackError, ValueError) as e:
        logger.error(f"Commande {args.command} en échec: {e}")
        print(f"Erreur: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
