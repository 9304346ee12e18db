from typing import Callable, Optional
from flask import Flask, jsonify, request
from portfolio_sync.config.logging import logger, setup_logging
from portfolio_sync.config.settings import Settings, load_settings
from portfolio_sync.services.syncer import SyncService

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def create_app(
    settings: Optional[Settings] = None,
    service_factory: Optional[Callable[[Settings], SyncService]] = None,
) -> Flask:
    """
    建立同步用的 HTTP 入口。
    settings 未提供時在每次請求時重新讀取環境變數。
    """
    if settings is not None:
        setup_logging(settings.LOG_LEVEL)
    app = Flask(__name__)
    make_service = service_factory or SyncService

    @app.after_request
    def add_cors_headers(response):
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({"error": "Method not allowed"}), 405

    def sync():
        if request.method == "OPTIONS":
            return "", 200
        # Flask 會自動替 GET 規則加上 HEAD，這裡明確拒絕
        if request.method == "HEAD":
            return method_not_allowed(None)

        try:
            current = settings
            if current is None:
                current = load_settings()
                setup_logging(current.LOG_LEVEL)
            result = make_service(current).run()
            return jsonify(result.to_dict()), 200 if result.success else 500
        except Exception as e:
            logger.error(f"Handler error: {e}", exc_info=True)
            return jsonify({
                "success": False,
                "error": "Internal server error",
                "message": str(e),
            }), 500

    for rule in ("/", "/api/sync"):
        app.add_url_rule(
            rule,
            endpoint=f"sync{rule.replace('/', '_')}",
            view_func=sync,
            methods=["GET", "POST", "OPTIONS"],
            provide_automatic_options=False,
        )

    return app
