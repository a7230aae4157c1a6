from sqlalchemy import Engine

from trucksales.core.config import settings
from trucksales.core.observability import log_event, setup_observability
from trucksales.db.session import engine, init_db


def startup(bind: Engine | None = None) -> None:
    """Prepare logging and the local database before the first screen is shown."""
    setup_observability()
    target = bind or engine
    init_db(target)
    log_event(
        "app.startup",
        app=settings.app_name,
        env=settings.env,
        database=target.url.render_as_string(hide_password=True),
    )
