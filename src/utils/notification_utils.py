"""
Derivation of sunrise, sunset and high-UV alerts from a solar context
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

import pytz

from models.config import AlertSettings
from models.notifications import ScheduledAlert
from models.solar import SolarContext
from utils.solar.constants import SolarConstants

logger = logging.getLogger(__name__)


def format_local_time(moment: datetime, timezone_identifier: Optional[str]) -> str:
    """Format an instant as h:mm AM/PM in the place's timezone"""
    try:
        tz = pytz.timezone(timezone_identifier) if timezone_identifier else pytz.utc
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return moment.astimezone(tz).strftime("%I:%M %p").lstrip("0")


def derive_notifications(
    context: SolarContext, settings: AlertSettings, now: datetime
) -> List[ScheduledAlert]:
    """Compute the alerts to schedule for a context.

    Alerts whose fire instant is not strictly after ``now`` are dropped. At most
    one high-UV alert is produced, for the earliest future sample whose rounded
    index reaches the high threshold.
    """
    if context.is_placeholder or not settings.notifications_enabled:
        return []

    city = context.city
    alerts: List[ScheduledAlert] = []

    if settings.sunrise_alert:
        alerts.append(
            ScheduledAlert(
                identifier=SolarConstants.SUNRISE_ALERT_ID,
                title=f"Sunrise approaching in {city}!",
                body="Good morning! The sun will rise soon.",
                fire_at=context.sunrise
                - timedelta(minutes=SolarConstants.SUNRISE_ALERT_LEAD_MINUTES),
            )
        )

    if settings.sunset_alert:
        alerts.append(
            ScheduledAlert(
                identifier=SolarConstants.SUNSET_ALERT_ID,
                title=f"Sunset approaching in {city}!",
                body="Get ready for the beautiful sunset colors.",
                fire_at=context.sunset
                - timedelta(minutes=SolarConstants.SUNSET_ALERT_LEAD_MINUTES),
            )
        )

    if settings.high_uv_alert:
        first_high = next(
            (
                sample
                for sample in context.hourly_uv
                if sample.time > now
                and sample.rounded_index >= SolarConstants.HIGH_UV_THRESHOLD
            ),
            None,
        )
        if first_high is not None:
            at = format_local_time(first_high.time, context.timezone)
            alerts.append(
                ScheduledAlert(
                    identifier=SolarConstants.HIGH_UV_ALERT_ID,
                    title=f"High UV Alert for {city}!",
                    body=(
                        f"UV Index will reach {first_high.rounded_index} "
                        f"({first_high.category}) at {at}. Protect your skin!"
                    ),
                    fire_at=first_high.time,
                )
            )

    future_alerts = [alert for alert in alerts if alert.fire_at > now]
    for alert in alerts:
        if alert not in future_alerts:
            logger.info(
                f"Notification {alert.identifier} skipped: {alert.fire_at} is in the past"
            )
    return future_alerts
