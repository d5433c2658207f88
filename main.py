# main.py
import json
import sys
from pathlib import Path

from traffic_sim.app.build import build
from traffic_sim.domain.entities.geography import BoundingBox, LatLng
from traffic_sim.io.overpass import parse_payload


def _covering_bounds(payload) -> BoundingBox:
    pts = [pt for road in parse_payload(payload) for pt in road.points]
    if not pts:
        raise ValueError("payload holds no road geometry")
    lats, lngs = [p[0] for p in pts], [p[1] for p in pts]
    return BoundingBox(min(lats), min(lngs), max(lats), max(lngs))


def run(overpass_json: str | Path, horizon_s: float, *, use_logging: bool = True) -> dict:
    """Load a saved Overpass response, let auto-refresh tick until the horizon."""
    payload = json.loads(Path(overpass_json).read_text(encoding="utf-8"))
    app = build(use_logging=use_logging)
    try:
        bounds = _covering_bounds(payload)
        app.roads.on_viewport(bounds, zoom=15, elements=payload.get("elements", ()))
        app.kernel.run(until=horizon_s)

        center = LatLng((bounds.south + bounds.north) / 2, (bounds.west + bounds.east) / 2)
        score = app.registry.score_at(center)
        return {
            "generations": app.registry.generation,
            "nodes": len(app.registry.get_current_nodes()),
            "label": score.label,
            "average": score.average,
        }
    finally:
        app.close()


if __name__ == "__main__":
    # usage: python main.py roads.json [horizon_s]
    horizon = float(sys.argv[2]) if len(sys.argv) > 2 else 600.0
    print(json.dumps(run(sys.argv[1], horizon)))
