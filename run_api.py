"""
Run Design Drift Watch API

Start the FastAPI development server
"""

from urllib.parse import urlparse

import uvicorn

from driftwatch.core.config import get_settings


def main():
    """Start the FastAPI server"""
    settings = get_settings()

    # Parse database URL for display
    parsed_db = urlparse(settings.database_url)
    db_host = parsed_db.hostname or "localhost"
    db_port = parsed_db.port or 5432
    db_name = parsed_db.path.lstrip('/') if parsed_db.path else "unknown"

    print(f"""
╔═══════════════════════════════════════════════════════════╗
║         Design Drift Watch API - Starting Server          ║
╚═══════════════════════════════════════════════════════════╝

📊 API Information:
   • Host: {settings.host}
   • Port: {settings.port}
   • Docs: http://localhost:{settings.port}/docs

🗄️  Database:
   • Host: {db_host}
   • Port: {db_port}
   • Database: {db_name}

🔧 Configuration:
   • Check interval: {settings.drift_check_interval_minutes}min
   • Fan-out width: {settings.fan_out_width}
   • Run deadline: {settings.run_deadline_seconds}s
   • Scheduler: {"enabled" if settings.scheduler_enabled else "disabled"}

Starting server...
""")

    uvicorn.run(
        "driftwatch.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
