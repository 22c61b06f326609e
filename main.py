import uvicorn
from linkmeta.config.event_loop import setup_event_loop

setup_event_loop()

# Set up logging first
from linkmeta.config.logging_config import setup_logging
setup_logging()

from linkmeta.core.config import settings
from linkmeta.main import app

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.server_reload,
        reload_dirs=["."]
    )
