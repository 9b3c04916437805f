import logging
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS
import cv2
import numpy as np

from domain.errors import InvalidImageError
from domain.models import ClassificationResult
from ml.action_guidance import get_recycling_verdict
from workers.classification_service import PlasticClassifierService

logger = logging.getLogger(__name__)


def decode_image(img_bytes: bytes) -> np.ndarray:
    """Decode uploaded bytes into an RGB array."""
    nparr = np.frombuffer(img_bytes, np.uint8)
    if nparr.size == 0:
        raise InvalidImageError("Empty upload")
    img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if img is None:
        raise InvalidImageError("Unable to decode upload")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def result_payload(result: ClassificationResult) -> dict:
    payload = result.to_dict()
    verdict = get_recycling_verdict(result.category)
    payload.update({
        "recyclable": verdict.recyclable,
        "resin_code": verdict.resin_code,
        "suggestions": verdict.suggestions,
    })
    return payload


def create_app(service: Optional[PlasticClassifierService] = None,
               load_on_start: bool = True) -> Flask:
    app = Flask(__name__)
    CORS(app)  # Allow frontend to call API

    service = service or PlasticClassifierService()
    app.extensions["classifier_service"] = service

    # Load model in the background; requests before READY get UNKNOWN
    if load_on_start:
        service.load_model_async()

    @app.route('/api/classify', methods=['POST'])
    def classify():
        if 'image' not in request.files:
            return jsonify({'error': 'No image provided'}), 400

        file = request.files['image']
        try:
            img = decode_image(file.read())
        except InvalidImageError as e:
            logger.warning("Rejected upload: %s", e)
            result = ClassificationResult.unknown()
        else:
            result = service.classify_image(img)

        payload = result_payload(result)
        payload['model_state'] = service.state.value
        return jsonify(payload)

    @app.route('/api/model/reload', methods=['POST'])
    def reload_model():
        try:
            service.load_model_async()
        except RuntimeError as e:
            return jsonify({'error': str(e)}), 503
        return jsonify({'model_state': service.state.value}), 202

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', 'model_state': service.state.value})

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    create_app().run(host='0.0.0.0', port=5001)
