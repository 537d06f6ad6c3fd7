"""
HTTP API for recording memories and querying them.
"""

from flask import Flask, jsonify, render_template_string, request

from .models.core import ValidationError
from .services.memory_management import MemoryManagementService
from .services.query_pipeline import MemoryRetrievalError
from .utils.config import config
from .utils.health_check import check_health, get_health_status
from .utils.logging_config import get_logger
from .utils.memory_store import StoreError

logger = get_logger(__name__)

INDEX_PAGE = """
<!DOCTYPE html>
<html>
  <head>
    <title>BizMem API</title>
    <style>
      body { font-family: system-ui, sans-serif; padding: 2rem; }
      code { background: #f4f4f4; padding: 2px 5px; border-radius: 4px; }
    </style>
  </head>
  <body>
    <h1>BizMem</h1>
    <p>Available endpoints:</p>
    <ul>
      <li><code>GET /api/memories</code> - Retrieve all memories</li>
      <li><code>POST /api/memories</code> - Create a new memory</li>
      <li><code>POST /api/query</code> - Query memories with AI</li>
      <li><code>GET /health</code> - Component health</li>
    </ul>
  </body>
</html>
"""


def create_app(service: MemoryManagementService) -> Flask:
    """Build the Flask application around a memory service.

    The caller is responsible for starting and shutting down the service.
    """
    app = Flask(__name__)

    @app.route('/')
    def index():
        return render_template_string(INDEX_PAGE)

    @app.route('/api/memories', methods=['POST'])
    def create_memory():
        candidate = request.get_json(silent=True) or {}
        try:
            memory = service.add(candidate)
        except ValidationError as e:
            logger.info(f'Rejected memory: {e}')
            return jsonify({'error': 'Failed to save', 'details': str(e)}), 400
        except StoreError:
            logger.exception('Failed to save memory')
            return jsonify({'error': 'Failed to save'}), 500
        return jsonify(memory.to_dict())

    @app.route('/api/memories', methods=['GET'])
    def list_memories():
        try:
            memories = service.list()
        except StoreError:
            logger.exception('Failed to list memories')
            return jsonify({'error': 'Failed to get list'}), 500
        return jsonify([memory.to_dict() for memory in memories])

    @app.route('/api/query', methods=['POST'])
    def query():
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400
        query_text = data.get('query')
        entity = data.get('entity')
        if not isinstance(query_text, (str, type(None))) or not isinstance(entity, (str, type(None))):
            return jsonify({'error': 'query and entity must be strings'}), 400

        try:
            result = service.query(query_text, entity)
        except MemoryRetrievalError:
            logger.exception('Failed to process query')
            return jsonify({'error': 'Failed to process query'}), 500
        return jsonify(result.to_dict())

    @app.route('/health', methods=['GET'])
    def health():
        # The reasoning service is only probed on request since each probe is a model call
        llm = service.pipeline.adapter.llm if request.args.get('deep') else None
        status = get_health_status(service.store, llm)
        healthy = all(component.get('healthy', False) for component in status.values())
        return jsonify({'healthy': healthy, 'components': status}), 200 if healthy else 503

    return app


def main() -> None:
    """Start the HTTP API.

    Host and port can be configured via environment variables:
    - HTTP_HOST (default: 127.0.0.1)
    - HTTP_PORT (default: 5000)
    """
    with MemoryManagementService() as service:
        check_health(service.store)
        app = create_app(service)
        app.run(host=config.http.host, port=config.http.port, debug=False)


if __name__ == '__main__':
    main()
