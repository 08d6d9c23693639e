"""
Bringing proposal and ground truth into one projected CRS.

Distances in the metric are planar, so both networks must share a projected
CRS before graphs are built.
"""

from pyproj import CRS, Transformer
from pyproj.aoi import AreaOfInterest
from pyproj.database import query_utm_crs_info

from topometric.io.geofile import GeoreferencedLines
from topometric.tracer import get_tracer, trace


WGS84 = "EPSG:4326"


def utm_crs_for_point(lon, lat):
    """WGS84 UTM zone CRS containing the given longitude/latitude."""
    infos = query_utm_crs_info(
        datum_name="WGS 84",
        area_of_interest=AreaOfInterest(
            west_lon_degree=lon,
            south_lat_degree=lat,
            east_lon_degree=lon,
            north_lat_degree=lat,
        ),
    )
    if not infos:
        raise ValueError(f"No UTM zone found for lon={lon}, lat={lat}")
    return CRS.from_epsg(infos[0].code)


def utm_crs_for_lines(georef):
    """UTM zone of the first coordinate of a georeferenced line collection."""
    first = next((line[0] for line in georef.lines if len(line) > 0), None)
    if first is None:
        raise ValueError("Cannot choose a UTM zone for an empty line collection")

    to_wgs84 = Transformer.from_crs(CRS.from_user_input(georef.crs), WGS84, always_xy=True)
    lon, lat = to_wgs84.transform(first[0], first[1])
    return utm_crs_for_point(lon, lat)


def project_lines(georef, to_crs):
    """Return a new GeoreferencedLines with every coordinate transformed to to_crs."""
    target = CRS.from_user_input(to_crs)
    transformer = Transformer.from_crs(CRS.from_user_input(georef.crs), target, always_xy=True)

    lines = []
    for line in georef.lines:
        xs, ys = transformer.transform([c[0] for c in line], [c[1] for c in line])
        lines.append([(float(x), float(y)) for x, y in zip(xs, ys)])

    return GeoreferencedLines(lines=lines, crs=target.to_string())


@trace(label="ensure_same_projected_crs")
def ensure_same_projected_crs(ground_truth, proposal):
    """
    Express both networks in one projected CRS.

    If the ground truth is already projected, the proposal is reprojected to
    it when the CRSs differ. Otherwise both are projected to the WGS84 UTM
    zone containing the first ground truth coordinate.

    Returns:
        (ground_truth, proposal) as GeoreferencedLines
    """
    tracer = get_tracer()

    gt_crs = CRS.from_user_input(ground_truth.crs)
    prop_crs = CRS.from_user_input(proposal.crs)

    if gt_crs.is_projected:
        if prop_crs != gt_crs:
            tracer.event(f"Projecting proposal from {proposal.crs} to {ground_truth.crs}")
            proposal = project_lines(proposal, gt_crs)
        return ground_truth, proposal

    utm = utm_crs_for_lines(ground_truth)
    tracer.event(f"Projecting both networks to {utm.to_string()}")

    return project_lines(ground_truth, utm), project_lines(proposal, utm)
