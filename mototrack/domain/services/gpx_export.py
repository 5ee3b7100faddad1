"""
Export GPX 1.1 d'une ride (partage / sauvegarde), généré avec gpxpy
"""
import xml.etree.ElementTree as ET

import gpxpy
import gpxpy.gpx

from mototrack.core.timeutils import ms_to_datetime
from mototrack.domain.entities.ride import Ride

GPX_CREATOR = "MotoTrack"


def ride_to_gpx(ride: Ride) -> str:
    """
    Construit le document GPX : une trace nommée d'après la ride, un segment,
    lat/lon/ele/time par point et la vitesse en extension <speed> quand elle est connue.
    """
    gpx = gpxpy.gpx.GPX()
    gpx.creator = GPX_CREATOR
    gpx.name = ride.title
    gpx.description = ride.description or None
    gpx.time = ride.start_time

    track = gpxpy.gpx.GPXTrack(name=ride.title)
    gpx.tracks.append(track)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    for coord in ride.coordinates():
        point = gpxpy.gpx.GPXTrackPoint(
            latitude=coord.latitude,
            longitude=coord.longitude,
            elevation=coord.altitude if coord.altitude is not None else 0,
            time=ms_to_datetime(coord.timestamp),
        )
        if coord.speed is not None:
            speed = ET.Element("speed")
            speed.text = str(coord.speed)
            point.extensions.append(speed)
        segment.points.append(point)

    return gpx.to_xml(version="1.1")


def gpx_filename(ride: Ride) -> str:
    return f"ride-{ride.start_time.strftime('%Y-%m-%d')}.gpx"
