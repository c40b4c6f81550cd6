#!/usr/bin/env python3
"""
JSON-RPC 2.0 Server for field validation

Lets any process that can spawn a subprocess validate records by talking
newline-delimited JSON over stdin/stdout.

Usage:
    python -m field_validation.jsonrpc_server [--config rules.yaml] [--debug]

Example request (stdin):
    {"jsonrpc":"2.0","id":1,"method":"validate",
     "params":{"rules":{"a":"defined|min:3"},"input":{"a":1}}}

Example response (stdout):
    {"jsonrpc":"2.0","id":1,"result":{"success":false,
     "errors":{"a":"The field 'a' has not the minimum length required"},
     "ordered_errors":["The field 'a' has not the minimum length required"]}}
"""

import argparse
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional

from .api import Validator
from .config_loader import ConfigLoader
from .errors import ValidatorError
from .registry import RuleRegistry

logger = logging.getLogger(__name__)


class ValidationJsonRpcServer:
    """JSON-RPC 2.0 server wrapping Validator."""

    # JSON-RPC error codes
    ERROR_PARSE = -32700        # Invalid JSON
    ERROR_INVALID_REQUEST = -32600  # Invalid JSON-RPC structure
    ERROR_METHOD_NOT_FOUND = -32601  # Unknown method
    ERROR_INVALID_PARAMS = -32602   # Invalid parameters
    ERROR_INTERNAL = -32000      # Application error (catch-all)

    def __init__(self, config_uri: Optional[str] = None):
        """
        Initialize JSON-RPC server.

        Args:
            config_uri: Optional rule document; its rules are used when a
                validate request carries none
        """
        self.running = False
        self.validator: Optional[Validator] = None
        self.registry = RuleRegistry()

        if config_uri:
            config = ConfigLoader(config_uri)
            self.registry = config.build_registry()
            self.validator = Validator(
                config.fields,
                registry=self.registry,
                stop_on_first_error=config.stop_on_first_error,
            )

        # Method dispatch table
        self.methods = {
            "validate": self._handle_validate,
            "list_rules": self._handle_list_rules,
        }

    def start_server(self):
        """
        Start the JSON-RPC server loop.

        Reads requests from stdin, writes responses to stdout until EOF or a
        stop signal.
        """
        self.running = True
        logger.debug("Validation JSON-RPC server started")

        while self.running:
            try:
                line = sys.stdin.readline()
                if not line:
                    logger.debug("EOF received, shutting down")
                    break
                if not line.strip():
                    continue

                logger.debug("Received: %s", line.strip())
                self._send_response(self.handle_request(line))

            except KeyboardInterrupt:
                logger.debug("KeyboardInterrupt received, shutting down")
                break

        logger.debug("Server stopped")

    def stop_server(self):
        self.running = False
        logger.debug("Stop signal received")

    def handle_request(self, request_json: str) -> Dict[str, Any]:
        """
        Parse and process a JSON-RPC request.

        Args:
            request_json: JSON-RPC request string

        Returns:
            JSON-RPC response dict (success or error)
        """
        try:
            request = json.loads(request_json)
        except json.JSONDecodeError as e:
            return self._error_response(None, self.ERROR_PARSE, f"Parse error: {e}")

        if not isinstance(request, dict):
            return self._error_response(
                None, self.ERROR_INVALID_REQUEST, "Request must be a JSON object"
            )

        request_id = request.get("id")
        if request.get("jsonrpc") != "2.0":
            return self._error_response(
                request_id,
                self.ERROR_INVALID_REQUEST,
                f"Invalid JSON-RPC version: {request.get('jsonrpc')}",
            )

        method = request.get("method")
        params = request.get("params", {})

        if not method:
            return self._error_response(
                request_id, self.ERROR_INVALID_REQUEST, "Missing 'method' field"
            )
        if method not in self.methods:
            return self._error_response(
                request_id, self.ERROR_METHOD_NOT_FOUND, f"Method not found: {method}"
            )
        if not isinstance(params, dict):
            return self._error_response(
                request_id,
                self.ERROR_INVALID_PARAMS,
                f"Params must be an object, got {type(params).__name__}",
            )

        logger.debug("Dispatching method: %s", method)
        try:
            result = self.methods[method](params)
        except (ValueError, TypeError, ValidatorError) as e:
            return self._error_response(request_id, self.ERROR_INVALID_PARAMS, str(e))
        except Exception as e:
            logger.exception("Error processing request")
            return self._error_response(
                request_id, self.ERROR_INTERNAL, f"Internal error: {e}"
            )

        return self._success_response(request_id, result)

    # Method handlers

    def _handle_validate(self, params: Dict[str, Any]) -> Any:
        """Handle 'validate' method."""
        record = params.get("input")
        rules = params.get("rules")
        stop_on_first_error = params.get("stop_on_first_error")

        if not isinstance(record, dict):
            raise ValueError("Missing required parameter: input (object)")
        if stop_on_first_error is not None and not isinstance(stop_on_first_error, bool):
            raise ValueError("Parameter stop_on_first_error must be a boolean")

        if rules is not None:
            # Request rules keep the loaded document's stop policy
            default_stop = self.validator.stop_on_first_error if self.validator else True
            validator = Validator(
                rules, registry=self.registry, stop_on_first_error=default_stop
            )
        elif self.validator is not None:
            validator = self.validator
        else:
            raise ValueError("Missing required parameter: rules (no rule document loaded)")

        validator.validate(record, stop_on_first_error)
        return validator.result.to_dict()

    def _handle_list_rules(self, params: Dict[str, Any]) -> Any:
        """Handle 'list_rules' method."""
        return {"rules": self.registry.names()}

    # Response formatting

    def _success_response(self, request_id: Any, result: Any) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    def _error_response(
        self, request_id: Any, code: int, message: str, data: Optional[Any] = None
    ) -> Dict[str, Any]:
        error = {"code": code, "message": message}
        if data is not None:
            error["data"] = data
        return {"jsonrpc": "2.0", "id": request_id, "error": error}

    def _send_response(self, response: Dict[str, Any]):
        """Send JSON-RPC response to stdout."""
        response_json = json.dumps(response)
        logger.debug("Sending: %s", response_json)
        sys.stdout.write(response_json + "\n")
        sys.stdout.flush()


def main():
    """Main entry point for JSON-RPC server."""
    parser = argparse.ArgumentParser(
        description="Field validation JSON-RPC 2.0 Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example usage:
  python -m field_validation.jsonrpc_server
  python -m field_validation.jsonrpc_server --config rules.yaml --debug

Supported methods:
  - validate
  - list_rules

Protocol: JSON-RPC 2.0 over stdin/stdout
See: https://www.jsonrpc.org/specification
        """,
    )
    parser.add_argument("--config", help="Rule document path or URI")
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging to stderr"
    )
    args = parser.parse_args()

    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    server = ValidationJsonRpcServer(config_uri=args.config)

    def signal_handler(sig, frame):
        server.stop_server()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    server.start_server()


if __name__ == "__main__":
    main()
