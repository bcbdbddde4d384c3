from .client import ActiveSource, ONVIFCamera
from .definition import SERVICES
from .discovery import DiscoveredDevice, Discovery
from .exceptions import (ERR_ONVIF_AUTH, ERR_ONVIF_CONFIG, ERR_ONVIF_NETWORK,
                         ERR_ONVIF_PROTOCOL, ERR_ONVIF_TIMEOUT, ERR_ONVIF_UNKNOWN,
                         AuthError, ConfigError, DiscoveryError, NetworkError,
                         ONVIFError, ProtocolError, RequestTimeoutError)
from .service import ONVIFService
from .utils import Signal, linerase

__all__ = ('ONVIFService', 'ONVIFCamera', 'ActiveSource', 'Discovery', 'DiscoveredDevice',
           'ONVIFError', 'NetworkError', 'RequestTimeoutError', 'ProtocolError',
           'AuthError', 'ConfigError', 'DiscoveryError',
           'ERR_ONVIF_UNKNOWN', 'ERR_ONVIF_PROTOCOL', 'ERR_ONVIF_NETWORK',
           'ERR_ONVIF_TIMEOUT', 'ERR_ONVIF_AUTH', 'ERR_ONVIF_CONFIG',
           'SERVICES', 'Signal', 'linerase')
