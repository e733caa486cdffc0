"""
MCP Routes

Named-function-call endpoint:
- GET  /mcp          schema of every supported function
- POST /mcp/execute  {name, parameters} -> {result} | {error}
- GET  /status       liveness
- GET  /             short documentation page
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from functools import partial
from typing import Any, Dict

from aiohttp import web

from config.settings import MCPConfig
from core.operations import OperationDispatcher
from utils.errors import InputError, UnknownOperationError
from utils.helpers import utc_now

logger = logging.getLogger("MCPRoutes")


class ResultEncoder(json.JSONEncoder):
    """JSON encoder for Decimal and datetime values"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


dumps = partial(json.dumps, cls=ResultEncoder)


INDEX_PAGE = """<!DOCTYPE html>
<html>
<head><title>{name}</title></head>
<body>
  <h1>{name}</h1>
  <p>{description}</p>
  <p>Version {version}</p>
  <h2>Endpoints</h2>
  <ul>
    <li><code>GET {base_url}</code> - function schema</li>
    <li><code>POST {execute_url}</code> - execute a function with <code>{{"name": ..., "parameters": {{...}}}}</code></li>
    <li><code>GET /status</code> - service status</li>
  </ul>
  <h2>Functions</h2>
  <ul>
{functions}
  </ul>
</body>
</html>
"""


class MCPRoutes:
    """
    Dispatch endpoint routes

    Unknown functions and invalid parameters answer 400, handler failures 500.
    """

    def __init__(self, dispatcher: OperationDispatcher, config: MCPConfig = None, scheduler=None):
        self.dispatcher = dispatcher
        self.config = config or MCPConfig()
        self.scheduler = scheduler
        self.logger = logger

    def setup_routes(self, app: web.Application):
        app.router.add_get('/', self.index)
        app.router.add_get('/status', self.status)
        app.router.add_get(self.config.base_url, self.schema)
        app.router.add_post(self.config.execute_url, self.execute)
        app.router.add_get(self.config.execute_url, self.execute_usage)

        self.logger.info("MCP routes configured")

    def schema_document(self) -> Dict[str, Any]:
        return {
            'schema_version': self.config.schema_version,
            'metadata': {
                'name': self.config.name,
                'description': self.config.description,
                'version': self.config.version,
            },
            'functions': self.dispatcher.describe(),
        }

    async def schema(self, request: web.Request) -> web.Response:
        return web.json_response(self.schema_document(), dumps=dumps)

    async def execute(self, request: web.Request) -> web.Response:
        """Execute one named function"""
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return web.json_response({'error': 'Request body must be valid JSON'}, status=400)
        if not isinstance(body, dict):
            return web.json_response({'error': 'Request body must be an object'}, status=400)

        name = body.get('name')
        self.logger.info(f"Function call received: {name}")

        try:
            result = await self.dispatcher.execute(name, body.get('parameters'))
            return web.json_response({'result': result}, dumps=dumps)

        except UnknownOperationError as e:
            self.logger.warning(str(e))
            return web.json_response({'error': str(e)}, status=400)

        except InputError as e:
            self.logger.warning(f"Invalid call to {name}: {e}")
            return web.json_response({'error': str(e)}, status=400)

        except Exception as e:
            self.logger.error(f"Error executing function {name}: {e}", exc_info=True)
            return web.json_response({'error': str(e)}, status=500)

    async def execute_usage(self, request: web.Request) -> web.Response:
        return web.json_response(
            {'error': f"Method not allowed. Use POST {self.config.execute_url} with {{name, parameters}}"},
            status=405,
        )

    async def status(self, request: web.Request) -> web.Response:
        data = {
            'status': 'ok',
            'timestamp': utc_now().isoformat(),
            'version': self.config.version,
        }
        if self.scheduler is not None:
            data['scheduled_tasks'] = self.scheduler.get_status()
        return web.json_response(data)

    async def index(self, request: web.Request) -> web.Response:
        functions = "\n".join(
            f"    <li><strong>{item['name']}</strong>: {item['description']}</li>"
            for item in self.dispatcher.describe()
        )
        page = INDEX_PAGE.format(
            name=self.config.name,
            description=self.config.description,
            version=self.config.version,
            base_url=self.config.base_url,
            execute_url=self.config.execute_url,
            functions=functions,
        )
        return web.Response(text=page, content_type='text/html')
