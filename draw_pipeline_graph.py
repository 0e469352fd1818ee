"""
Script to draw the solar sync engine's update-for-place LangGraph

Writes the Mermaid definition next to the script; pass --png to also render
an image (rendering goes through the mermaid.ink web service).
"""

import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from engine import SolarSyncEngine
from models.config import AppSettings, ServiceConfig
from utils.display_utils import DisplayRefreshSignal
from utils.geocoding_utils import GeocodeAdapter
from utils.location_utils import ReportedLocationSource
from utils.notification_scheduler import NotificationScheduler
from utils.open_meteo_utils import OpenMeteoClient
from utils.preferences_store import PreferencesStore

OUTPUT_STEM = "solar_sync_pipeline_graph"


def build_engine() -> SolarSyncEngine:
    """Engine wired to the real adapters; nothing is started"""
    config = ServiceConfig()
    geocoder = GeocodeAdapter(config.geocoder)
    return SolarSyncEngine(
        settings=AppSettings(),
        config=config,
        location_source=ReportedLocationSource(geocoder),
        geocoder=geocoder,
        data_client=OpenMeteoClient(config.provider),
        notifier=NotificationScheduler(),
        preferences=PreferencesStore(config.preferencesPath),
        display=DisplayRefreshSignal(),
    )


def draw_pipeline_graph(render_png: bool = False):
    """Draw the update-for-place graph"""
    print("Building solar sync engine...")

    try:
        graph = build_engine().graph.get_graph()

        mermaid_text = graph.draw_mermaid()
        with open(f"{OUTPUT_STEM}.mmd", mode="w") as f:
            f.write(mermaid_text)
        print(f"Mermaid definition saved to: {OUTPUT_STEM}.mmd")

        if render_png:
            with open(f"{OUTPUT_STEM}.png", mode="wb") as f:
                f.write(graph.draw_mermaid_png())
            print(f"Rendered graph saved to: {OUTPUT_STEM}.png")

        print(f"\n{mermaid_text}")

    except Exception as e:
        print(f"Error drawing graph: {e}")
        import traceback

        traceback.print_exc()


if __name__ == "__main__":
    draw_pipeline_graph(render_png="--png" in sys.argv[1:])
