import logging
from typing import Optional

from flask import Flask, Response, request

from hello_service.config import AppConfig, load_config
from hello_service.interceptor import CallInterceptor
from hello_service.responder import HelloResponder

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None, interceptor: Optional[CallInterceptor] = None,
               profile: Optional[str] = None) -> Flask:
    """
    Build the Flask app serving GET /hello.

    Configuration is resolved here when not passed in, so a missing app.message
    fails before any route exists.

    Args:
        config: Pre-loaded configuration. Loaded via load_config(profile) if omitted.
        interceptor: Interceptor applied to the responder and the view.
            Defaults to one logging to stdout for the hello_service namespace.
        profile: Profile name used only when config is omitted.

    Returns:
        Flask: The configured application.
    """
    if config is None:
        config = load_config(profile=profile)
    if interceptor is None:
        interceptor = CallInterceptor()

    responder = interceptor.weave(HelloResponder.from_config(config))

    app = Flask(__name__)
    app.config["APP_PROFILE"] = config.profile.value
    app.config["SERVER_PORT"] = config.port
    app.extensions["hello_responder"] = responder

    @interceptor
    def hello():
        logger.debug(f"Received request at {request.path}")
        return responder.get_message()

    @app.route("/hello", methods=["GET"])
    def hello_route():
        return Response(hello(), status=200, mimetype="text/plain")

    logger.info(f"Flask app created | Profile: {config.profile.value}")
    return app
