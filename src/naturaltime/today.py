"""CLI entry point printing today's natural date and sky.

Set NATURALTIME_LATITUDE / NATURALTIME_LONGITUDE (or a .env file), then run:
    python -m naturaltime.today
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

from naturaltime.celestial import CelestialEventProjector  # noqa: E402
from naturaltime.config import load_settings  # noqa: E402
from naturaltime.models import Occurs  # noqa: E402

logging.basicConfig(level=os.environ.get("NATURALTIME_LOG_LEVEL", "WARNING"))

latitude = float(os.environ.get("NATURALTIME_LATITUDE", "48.8566"))
longitude = float(os.environ.get("NATURALTIME_LONGITUDE", "2.3522"))

projector = CelestialEventProjector.from_settings(load_settings())
now = projector.engine.compute(None, longitude)
sun = projector.sun_events(now, latitude)
moon = projector.moon_position(now, latitude)
moon_events = projector.moon_events(now, latitude)


def _fmt(event) -> str:
    return f"{event.degrees:06.2f}°" if isinstance(event, Occurs) else "---"


print(f"{now.date_string()} {now.time:06.2f}° (longitude {longitude:+.1f})")
print(f"Sunrise {sun.sunrise:06.2f}°  Sunset {sun.sunset:06.2f}°")
print(f"Night {sun.night_start:06.2f}° > {sun.night_end:06.2f}°")
print(f"Golden hour {sun.morning_golden_hour:06.2f}° / {sun.evening_golden_hour:06.2f}°")
print(f"Moon phase {moon.phase:.1f}° ({moon.illumination:.0%} lit)")
print(f"Moonrise {_fmt(moon_events.moonrise)}  Moonset {_fmt(moon_events.moonset)}")
