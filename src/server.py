"""Local development server: every route on one port."""

from http.server import ThreadingHTTPServer

from src.app import get_app
from src.services.supabase_client import close_supabase_client
from src.utils.logging import get_structured_logger
from src.web.handler import JSONRequestHandler

logger = get_structured_logger(__name__)


def main() -> None:
    app = get_app()
    server = ThreadingHTTPServer(("0.0.0.0", app.config.port), JSONRequestHandler)
    logger.info("Server listening", port=app.config.port, environment=app.config.environment)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server shutting down")
    finally:
        server.server_close()
        close_supabase_client()


if __name__ == "__main__":
    main()
