"""
Hole-punching path matching around a single seed.

The seed is paired with its nearest proposal station and matching grows
outward over pairs of stations, one per network, that lie within
`hole_radius` of each other. From a pair the ground truth, the proposal or
both may step along one link when the new pair is still within
`hole_radius`; every link stepped this way is matched. From every paired
ground-truth station the ground truth is also searched up to
`hole_bridge_distance` ahead for stations with a proposal station within
`hole_radius`. Matching resumes from those pairs too, and the unmatched links
in between form a hole.

Explored length is every link with an end closer than the exploration radius
to the seed on the ground truth, or to the nearest proposal station on the
proposal, plus any matched proposal link reached across a hole. A larger
`hole_radius` only adds pairs, so matched length never shrinks.
"""

import heapq
import math
from collections import deque

import networkx as nx

from topometric.errors import InvalidGeometryError
from topometric.graph.spatial_graph import planar_distance
from topometric.models import MatchResult


class HolePunchingMatcher:
    """
    Compares the local topology of two station graphs around seeds.

    Holds only read-only references to both graphs; every call to `match`
    works on its own state, so one matcher can serve many threads.
    """

    def __init__(self, ground_truth, proposal, hole_radius, hole_bridge_distance,
                 exploration_radius, snap_tolerance=None):
        if hole_radius < 0:
            raise InvalidGeometryError(f"hole_radius must be >= 0, got {hole_radius}")
        if hole_bridge_distance < 0:
            raise InvalidGeometryError(f"hole_bridge_distance must be >= 0, got {hole_bridge_distance}")
        if exploration_radius <= 0:
            raise InvalidGeometryError(f"exploration_radius must be > 0, got {exploration_radius}")
        if snap_tolerance is None:
            snap_tolerance = hole_radius
        if snap_tolerance < 0:
            raise InvalidGeometryError(f"snap_tolerance must be >= 0, got {snap_tolerance}")

        self.ground_truth = ground_truth
        self.proposal = proposal
        self.hole_radius = hole_radius
        self.hole_bridge_distance = hole_bridge_distance
        self.exploration_radius = exploration_radius
        self.snap_tolerance = snap_tolerance

    def match(self, seed):
        """Run the comparison for one SeedLocation and return its MatchResult."""
        return _SeedWalk(self, seed).run()


class _SeedWalk:
    """Mutable state of one seed evaluation."""

    def __init__(self, matcher, seed):
        self.m = matcher
        self.gt = matcher.ground_truth
        self.prop = matcher.proposal
        self.seed = seed

        self.gt_dist = {}
        # link_id -> length, for links stepped by a pair
        self.gt_matched = {}
        self.prop_matched = {}

        self.pairs = set()
        self._queue = deque()
        self._searched = set()
        self._near = {}

    def run(self):
        radius = self.m.exploration_radius
        seed_key = self.seed.station

        self.gt_dist = _ball(self.gt, seed_key, radius)
        explored_gt = _links_within(self.gt, self.gt_dist, radius)

        snap = self.prop.nearest(self.seed.coord, self.m.snap_tolerance)
        if snap is None:
            return MatchResult(
                seed_id=self.seed.seed_id,
                explored_ground_truth=_length(explored_gt),
            )

        p0 = snap[0]
        explored_prop = _links_within(self.prop, _ball(self.prop, p0, radius), radius)

        self._grow(seed_key, p0)
        explored_prop.update(self.prop_matched)
        bridged, failed = self._count_holes(explored_gt)

        return MatchResult(
            seed_id=self.seed.seed_id,
            matched_ground_truth=_length(self.gt_matched),
            matched_proposal=_length(self.prop_matched),
            explored_ground_truth=_length(explored_gt),
            explored_proposal=_length(explored_prop),
            matched_stations=len({g for g, _ in self.pairs}),
            holes_bridged=bridged,
            holes_failed=failed,
            proposal_anchor=self.prop.position(p0),
        )

    def _grow(self, seed_key, p0):
        """Collect every station pair reachable from the seed pair."""
        radius = self.m.exploration_radius
        self._visit((seed_key, p0))

        while self._queue:
            g, p = self._queue.popleft()
            if self.gt_dist[g] >= radius:
                continue

            prop_links = list(self.prop.links(p))

            for g2, g_len, g_id in self.gt.links(g):
                if self._close(g2, p):
                    self.gt_matched[g_id] = g_len
                    self._visit((g2, p))
                for p2, p_len, p_id in prop_links:
                    if self._close(g2, p2):
                        self.gt_matched[g_id] = g_len
                        self.prop_matched[p_id] = p_len
                        self._visit((g2, p2))

            for p2, p_len, p_id in prop_links:
                if self._close(g, p2):
                    self.prop_matched[p_id] = p_len
                    self._visit((g, p2))

            if g not in self._searched:
                self._searched.add(g)
                for pair in self._hole_landings(g):
                    self._visit(pair)

    def _visit(self, pair):
        if pair not in self.pairs:
            self.pairs.add(pair)
            self._queue.append(pair)

    def _close(self, g, p):
        return planar_distance(self.gt.position(g), self.prop.position(p)) <= self.m.hole_radius

    def _near_proposal(self, g):
        """Proposal stations within hole_radius of a ground-truth station."""
        if g not in self._near:
            hits = self.prop.within(self.gt.position(g), self.m.hole_radius)
            self._near[g] = [key for key, _ in hits]
        return self._near[g]

    def _hole_landings(self, g):
        """
        Pairs found by crossing up to hole_bridge_distance of ground truth from g.

        The search stays inside the explored ground truth and may land on any
        proposal station, including one in a separate proposal component.
        """
        limit = self.m.hole_bridge_distance
        radius = self.m.exploration_radius
        ahead = {g: 0.0}
        queue = [(0.0, g)]
        landings = []

        while queue:
            dl, s = heapq.heappop(queue)
            if dl > ahead[s]:
                continue
            if s != g:
                landings.extend((s, q) for q in self._near_proposal(s))
            if self.gt_dist[s] >= radius:
                continue

            for s2, link, _ in self.gt.links(s):
                nd = dl + link
                if nd > limit or nd >= ahead.get(s2, math.inf):
                    continue
                ahead[s2] = nd
                heapq.heappush(queue, (nd, s2))

        return landings

    def _count_holes(self, explored_gt):
        """
        Count runs of unmatched ground truth by how many paired stations they touch.

        A run between two or more paired stations is a bridged hole; a run
        leaving a single paired station is a failed one.
        """
        unmatched = nx.Graph()
        for link_id in explored_gt:
            if link_id not in self.gt_matched:
                unmatched.add_edge(link_id[0], link_id[1])

        paired = {g for g, _ in self.pairs}
        bridged = failed = 0
        for component in nx.connected_components(unmatched):
            ends = len(component & paired)
            if ends >= 2:
                bridged += 1
            elif ends == 1:
                failed += 1
        return bridged, failed


def _ball(stations, origin, radius):
    """
    Path distance from origin to every station reached by expanding only
    stations closer than radius.
    """
    dist = {origin: 0.0}
    queue = [(0.0, origin)]

    while queue:
        d, s = heapq.heappop(queue)
        if d > dist[s] or d >= radius:
            continue
        for s2, link, _ in stations.links(s):
            nd = d + link
            if nd < dist.get(s2, math.inf):
                dist[s2] = nd
                heapq.heappush(queue, (nd, s2))

    return dist


def _links_within(stations, dist, radius):
    """Links with at least one end closer than radius, as {link_id: length}."""
    links = {}
    for s, d in dist.items():
        if d < radius:
            for _, length, link_id in stations.links(s):
                links[link_id] = length
    return links


def _length(links):
    return math.fsum(links.values())
