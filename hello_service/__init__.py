"""
Hello service: GET /hello returning the message of the active profile, with
method entry/exit logging for everything in the hello_service namespace.
"""

from hello_service.config import AppConfig, ConfigMissingError, Profile, load_config
from hello_service.interceptor import CallInterceptor, InvocationEvent, LoggingSink, Phase, StreamSink
from hello_service.responder import HelloResponder

__version__ = "0.1"
