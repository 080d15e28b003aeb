import atexit
import json
import os
import traceback
from typing import Optional

import cv2
from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from flasgger import Swagger, swag_from

from paper_scanner import PipelineConfig, ScanPipeline

from server.processor import NoPagesError, process_scan
from server.tech import read_files


current_directory = os.path.dirname(os.path.abspath(__file__))
SWAGGER_FOLDER = os.path.join(current_directory, "swagger")

# Set the maximum upload size to 50MB
MEGABYTE = (2 ** 10) ** 2


def create_app(config: Optional[PipelineConfig] = None, pipeline: Optional[ScanPipeline] = None) -> Flask:
    """
    Build the HTTP app.

    Args:
        config: Pipeline config, read from the environment if omitted
        pipeline: Ready pipeline to use (the model detector inside it is shared by all requests).
            A pipeline passed in stays owned by the caller, who closes it.
            A pipeline built here is closed when the interpreter exits.
    """
    if pipeline is None:
        pipeline = ScanPipeline.from_config(config or PipelineConfig.from_env())
        atexit.register(pipeline.close)

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = 50 * MEGABYTE
    app.config['MAX_FORM_MEMORY_SIZE'] = 50 * MEGABYTE
    app.extensions['scan_pipeline'] = pipeline

    # Enable CORS for all routes
    CORS(app)

    # Setup Swagger
    swagger_config = {
        "specs_route": "/docs/",
        "specs": [
            {
                "endpoint": 'apispec_1',
                "route": '/docs-json',
                "rule_filter": lambda rule: True,  # all in
                "model_filter": lambda tag: True,  # all in
            }
        ],
    }
    Swagger(app, config=swagger_config, merge=True)

    @app.route('/health', methods=['GET'])
    @swag_from(os.path.join(SWAGGER_FOLDER, "health.yml"))
    def health():
        return jsonify(status="ok", opencv=cv2.__version__), 200

    @app.route('/process-scan', methods=['POST'])
    @swag_from(os.path.join(SWAGGER_FOLDER, "process-scan.yml"))
    def process_scan_route():
        files = request.files.getlist('images')
        if len(files) == 0:
            return jsonify(error="No images provided"), 400

        uploads = read_files(files)

        try:
            pdf, debug_info = process_scan(uploads, pipeline)
        except NoPagesError as e:
            return jsonify(error=str(e), details=e.details), 400
        except Exception as e:
            traceback.print_exc()
            return jsonify(error="Failed to process images", details=str(e)), 500

        response = Response(pdf, mimetype='application/pdf')
        response.headers['X-Debug-Info'] = json.dumps(debug_info)
        response.headers['Content-Disposition'] = 'attachment; filename=scan.pdf'
        return response

    return app
