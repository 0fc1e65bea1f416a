import logging

import uvicorn

from tablebook.config import settings

if __name__ == "__main__":
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("🚀 Starting tablebook reservation service...")

    # Start the server
    uvicorn.run(
        "tablebook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
