"""
Tiny HTTP server that charges for ``GET /weather`` using :class:`PaymentProcessor`.

Configuration comes from ``XGRAIN402_*`` variables (see ``load_server_config``).
"""

from __future__ import annotations

import json
import logging
from http.server import BaseHTTPRequestHandler, HTTPServer

from xgrain402 import (
    ConfigError,
    RouteConfig,
    RouteOptions,
    TokenAmount,
    create_payment_processor,
)

ROUTE = RouteConfig(
    price=TokenAmount("10000"),
    options=RouteOptions(description="Current weather", mime_type="application/json"),
)


def build_handler(processor):
    class PaidHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            if self.path != "/weather":
                self.send_error(404)
                return

            host = self.headers.get("Host", "localhost")
            result = processor.process(
                self.headers,
                ROUTE,
                lambda: {"forecast": "sunny", "temperature": 21},
                resource=f"http://{host}{self.path}",
            )
            payload = json.dumps(result.body).encode("utf-8")
            self.send_response(result.status)
            self.send_header("Content-Type", "application/json")
            if result.settlement is not None and result.settlement.success:
                self.send_header("X-PAYMENT-RESPONSE", json.dumps(result.settlement.raw))
            self.end_headers()
            self.wfile.write(payload)

    return PaidHandler


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    try:
        processor = create_payment_processor()
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    server = HTTPServer(("127.0.0.1", 8402), build_handler(processor))
    logging.info("Serving paid weather on http://127.0.0.1:8402/weather")
    server.serve_forever()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
