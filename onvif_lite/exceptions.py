''' Core exceptions raised by the ONVIF Client '''

# Error codes setting
# Error unknown, e.g. an unexpected response shape
ERR_ONVIF_UNKNOWN  = 1
# Protocol error returned by the device,
# e.g: malformed envelope, SOAP Fault (NotAuthorized, InvalidArgVal, ...)
ERR_ONVIF_PROTOCOL = 2
# Connection refused/reset, DNS failure
ERR_ONVIF_NETWORK  = 3
# Request deadline exceeded
ERR_ONVIF_TIMEOUT  = 4
# Bad digest challenge or rejected credentials
ERR_ONVIF_AUTH     = 5
# Local misconfiguration found while connecting
ERR_ONVIF_CONFIG   = 6


class ONVIFError(Exception):
    code = ERR_ONVIF_UNKNOWN

    def __init__(self, err, xml=None):
        if isinstance(err, ONVIFError):
            self.reason = err.reason
            self.code = err.code
            xml = xml or err.xml
        elif isinstance(err, Exception):
            self.reason = 'Unknown error: ' + str(err)
        else:
            self.reason = str(err)
        # raw response text, when the error came from the device
        self.xml = xml
        super().__init__(self.reason)

    def __str__(self):
        return self.reason


class NetworkError(ONVIFError):
    code = ERR_ONVIF_NETWORK

    def __init__(self, err, errno=None):
        super().__init__(err)
        if isinstance(err, Exception) and not isinstance(err, ONVIFError):
            self.reason = str(err) or type(err).__name__
        self.errno = errno


class RequestTimeoutError(ONVIFError, TimeoutError):
    code = ERR_ONVIF_TIMEOUT


class ProtocolError(ONVIFError):
    code = ERR_ONVIF_PROTOCOL


class AuthError(ONVIFError):
    code = ERR_ONVIF_AUTH


class ConfigError(ONVIFError):
    code = ERR_ONVIF_CONFIG


class DiscoveryError(ONVIFError):
    """ Raised by a probe sweep that received at least one bad reply """
    code = ERR_ONVIF_PROTOCOL

    def __init__(self, errors):
        super().__init__('%d discovery error(s): %s'
                         % (len(errors), '; '.join(str(e) for e in errors)))
        self.errors = list(errors)
