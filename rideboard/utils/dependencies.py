# dependencies.py
from functools import lru_cache

from ..config import settings
from ..database import async_session
from .driver_available_notifier import ProximityNotifier
from .notification_dispatcher import NotificationDispatcher
from .repositories import NotificationStore, ProfileDirectory
from .zip_distance import ZipDistanceResolver, load_zip_centroids


@lru_cache()
def get_zip_resolver() -> ZipDistanceResolver:
    """Centroid table is loaded once per process."""
    return ZipDistanceResolver(load_zip_centroids(settings.ZIP_CENTROIDS_PATH))


def build_notifier(directory, store, resolver: ZipDistanceResolver) -> ProximityNotifier:
    dispatcher = NotificationDispatcher(
        store,
        resolver,
        debounce_minutes=settings.DEBOUNCE_MINUTES,
        max_concurrency=settings.MAX_CONCURRENT_DISPATCHES,
        timeout_seconds=settings.NOTIFICATION_TIMEOUT_SECONDS,
        link_template=settings.PROFILE_LINK_TEMPLATE,
    )
    return ProximityNotifier(
        directory,
        dispatcher,
        resolver,
        radius_miles=settings.NEARBY_RADIUS_MI,
        directory_timeout_seconds=settings.DIRECTORY_TIMEOUT_SECONDS,
    )


@lru_cache()
def get_notifier() -> ProximityNotifier:
    return build_notifier(
        ProfileDirectory(async_session),
        NotificationStore(async_session),
        get_zip_resolver(),
    )
