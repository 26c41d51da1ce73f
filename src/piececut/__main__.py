"""
Entry point for running piececut as a module: python -m piececut
"""
import logging
import os

import uvicorn

logger = logging.getLogger("piececut")


def main():
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting PieceCut service...")

    port = int(os.getenv('PORT', 8000))
    debug = os.getenv('DEBUG', 'false').lower() == 'true'
    workers = int(os.getenv('WORKERS', 1))

    if debug:
        uvicorn.run("piececut.app:app", host='0.0.0.0', port=port, log_level='info', reload=True)
    else:
        uvicorn.run(
            "piececut.app:app",
            host='0.0.0.0',
            port=port,
            log_level='info',
            workers=max(1, workers),
            reload=False
        )


if __name__ == '__main__':
    main()
