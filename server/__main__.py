import os

# load envs
from dotenv import load_dotenv
load_dotenv()

import cv2

from paper_scanner import PipelineConfig, ScanPipeline
from server import create_app


PORT = int(os.getenv("PORT", 8080))
HOST = os.getenv("HOST", None)


def main():
    config = PipelineConfig.from_env()
    with ScanPipeline.from_config(config) as pipeline:
        app = create_app(pipeline=pipeline)
        print(f"Scanner backend running on port {PORT}")
        print(f"OpenCV version: {cv2.__version__}")
        app.run(port=PORT, host=HOST)


if __name__ == "__main__":
    main()
