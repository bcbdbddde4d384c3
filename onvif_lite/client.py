""" ONVIF API
"""
import asyncio
import logging
import time
from collections import namedtuple
from datetime import datetime, timezone
from urllib.parse import urlsplit, urlunsplit

import httpx
from zeep.transports import AsyncTransport

from .auth import HTTPDigest, UsernameDigestTokenDtDiff, security_header
from .definition import SERVICES
from .device import Device
from .events import Events
from .exceptions import (AuthError, ConfigError, NetworkError, ONVIFError,
                         ProtocolError, RequestTimeoutError)
from .imaging import Imaging
from .media import Media, Media2
from .ptz import PTZ
from .soap import FAULT_PREFIX, unwrap, wrap
from .utils import Signal, linerase, safeFunc

logger = logging.getLogger('onvif_lite')
# the camera logs raw traffic itself
logging.getLogger('zeep.transports').setLevel(logging.WARNING)

NOT_AUTHORIZED = 'sender not authorized'

ActiveSource = namedtuple('ActiveSource', (
    'source_token', 'profile_token', 'video_source_configuration_token',
    'encoding', 'width', 'height', 'fps', 'bitrate', 'ptz',
), defaults=(None,) * 6)


def find_errno(err):
    """ errno of the first OSError in the exception chain """
    while err is not None:
        if isinstance(err, OSError) and err.errno:
            return err.errno
        err = err.__cause__ or err.__context__
    return None


class ONVIFCamera:
    """
    Python Implementation of an ONVIF compliant device.
    This class owns the connection settings, the service address table and
    the request pipeline every service facade goes through.

    The device clock offset (`time_shift`) is learned from the first
    successful GetSystemDateAndTime, so WS-Security timestamps match the
    device clock even when the two are not synchronized.
    Please note that using NTP on both end is the recommended solution.

    >>> from onvif_lite import ONVIFCamera
    >>> async with ONVIFCamera('192.168.0.112', 80, 'admin', '12345') as mycam:
    ...     await mycam.connect()
    ...     await mycam.ptz.continuous_move(velocity={'zoom': 0.5})
    ...     uri = await mycam.media.get_stream_uri()

    Signals: `raw_request` (envelope text), `raw_response` (response text),
    `warn` (message) and `connected` (camera).
    """
    def __init__(self, hostname, port=None, username=None, password=None, *,
                 path='/onvif/device_service', timeout=120, use_secure=False,
                 secure_options=True, proxy=None, preserve_address=False,
                 use_wsse=True, urn=None, transport=None):
        self.hostname = hostname
        self.port = int(port) if port else (443 if use_secure else 80)
        self.username = username
        self.password = password
        self.path = path
        self.timeout = timeout
        self.use_secure = use_secure
        self.secure_options = secure_options
        self.proxy = proxy
        self.preserve_address = preserve_address
        self.use_wsse = use_wsse
        self.urn = urn

        # Service address table, filled by GetServices/GetCapabilities
        self.uri = {}
        self.capabilities = {}
        self.time_shift = None
        self.digest = HTTPDigest()

        self.default_profiles = []
        self.default_profile = None
        self.active_sources = []
        self.active_source = None

        self.raw_request = Signal('raw_request')
        self.raw_response = Signal('raw_response')
        self.warn = Signal('warn')
        self.connected = Signal('connected')

        self.own_transport = transport is None
        self.transport = transport or self.create_transport()

        self.device = Device(self)
        self.media = Media(self)
        self.media2 = Media2(self)
        self.ptz = PTZ(self)
        self.imaging = Imaging(self)
        self.events = Events(self)

    def create_transport(self):
        # environment proxies are ignored, only an explicit `proxy` is used
        options = {'verify': self.secure_options, 'trust_env': False, 'timeout': None}
        if self.proxy:
            options['proxy'] = self.proxy
        return AsyncTransport(client=httpx.AsyncClient(**options),
                              wsdl_client=httpx.Client(trust_env=False))

    async def close(self):
        if self.own_transport:
            await self.transport.client.aclose()
            self.transport.wsdl_client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def __repr__(self):
        return '<ONVIFCamera %s:%s>' % (self.hostname, self.port)

    @property
    def base_url(self):
        host = '[%s]' % self.hostname if ':' in self.hostname else self.hostname
        return '%s://%s:%s' % ('https' if self.use_secure else 'http', host, self.port)

    def parse_url(self, address):
        """ Parse a service address with an eye on `preserve_address`:
        host and port from the settings replace the ones the device reported
        """
        parsed = urlsplit(address)
        if self.preserve_address and (parsed.hostname != self.hostname or parsed.port != self.port):
            host = '[%s]' % self.hostname if ':' in self.hostname else self.hostname
            parsed = parsed._replace(netloc='%s:%s' % (host, self.port))
        return urlunsplit(parsed)

    def service_path(self, service=None):
        if service and self.uri.get(service):
            parsed = urlsplit(self.uri[service])
            path = parsed.path or '/'
            return '%s?%s' % (path, parsed.query) if parsed.query else path
        return self.path

    def device_time(self):
        """ Current time on the device clock """
        if self.time_shift is None:
            return datetime.now(timezone.utc)
        return datetime.fromtimestamp(time.monotonic() + self.time_shift, timezone.utc)

    def security(self):
        if not (self.use_wsse and self.username and self.password):
            return None
        token = UsernameDigestTokenDtDiff(self.username, self.password, clock=self.device_time)
        return security_header(token)

    @safeFunc
    async def request(self, body, service=None, headers=None, timeout=None, secure=True):
        """
        Send a SOAP body fragment to the device.

        :param body: XML fragment of the operation
        :param service: name of the service in the address table, the device
          service path is used when the service is unknown
        :param headers: extra HTTP headers
        :param timeout: deadline of the whole exchange in seconds
        :param secure: attach the WS-Security header when credentials are set
        :return: tuple of the body tree and the response text
        """
        envelope = wrap(body, self.security() if secure else None)
        path = self.service_path(service)
        timeout = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(self._exchange(path, envelope, headers), timeout)
        except ONVIFError:
            raise
        except asyncio.TimeoutError:
            raise RequestTimeoutError('Network timeout') from None

    async def _exchange(self, path, envelope, extra_headers=None):
        url = self.base_url + path
        data = envelope.encode('utf-8')
        headers = {
            'Content-Type': 'application/soap+xml; charset=utf-8',
            'Content-Length': str(len(data)),
        }
        headers.update(extra_headers or {})

        logger.debug('Request to %s:\n%s', url, envelope)
        self.raw_request.send(envelope)
        response = await self._post(url, data, headers)
        challenge = response.headers.get('WWW-Authenticate')
        if response.status_code == 401 and challenge and self.username and self.password:
            headers['Authorization'] = self.digest.authorization(
                self.username, self.password, 'POST', path, challenge)
            logger.debug('Retrying %s with HTTP digest authentication', url)
            response = await self._post(url, data, headers)
            if response.status_code == 401:
                raise AuthError('Digest authentication rejected by %s' % url, xml=response.text)

        xml = response.text
        logger.debug('Response from %s (status: %d):\n%s', url, response.status_code, xml)
        self.raw_response.send(xml)
        if response.status_code != 401:
            return unwrap(xml)
        # a SOAP fault sent with 401 is reported as the fault
        try:
            unwrap(xml)
        except ProtocolError as err:
            if str(err).startswith(FAULT_PREFIX):
                raise
            raise AuthError('Unauthorized (401) from %s' % url, xml=xml) from err
        raise AuthError('Unauthorized (401) from %s' % url, xml=xml)

    async def _post(self, url, data, headers):
        try:
            return await self.transport.post(url, data, headers)
        except httpx.TimeoutException as err:
            raise RequestTimeoutError('Network timeout') from err
        except (httpx.TransportError, OSError) as err:
            raise NetworkError(err, errno=find_errno(err)) from err

    @safeFunc
    async def get_system_date_and_time(self):
        """
        Receive date and time from the device. The first attempt carries no
        WS-Security header because the device clock is not known yet; devices
        that refuse it ("Sender not Authorized") are asked again with
        credentials. The first success sets `time_shift`.
        """
        body = '<GetSystemDateAndTime xmlns="%s"/>' % SERVICES['device'].ns
        try:
            data, _ = await self.request(body, secure=False)
        except ProtocolError as err:
            if not (err.xml and NOT_AUTHORIZED in err.xml.lower()):
                raise
            logger.debug('Unauthenticated GetSystemDateAndTime refused, retrying with credentials')
            data, _ = await self.request(body)
        return self.setup_system_date_and_time(data)

    def setup_system_date_and_time(self, data):
        system = linerase(data)['getSystemDateAndTimeResponse']['systemDateAndTime']
        date_time = system.get('UTCDateTime') or system.get('localDateTime')
        if not date_time:
            # Seen on cheap cameras that report no time at all
            device_time = datetime.now(timezone.utc)
        else:
            date, clock = date_time['date'], date_time['time']
            device_time = datetime(int(date['year']), int(date['month']), int(date['day']),
                                   int(clock['hour']), int(clock['minute']), int(clock['second']),
                                   tzinfo=timezone.utc)
        if self.time_shift is None:
            self.time_shift = device_time.timestamp() - time.monotonic()
        return device_time

    def get_active_sources(self):
        """ Match every video source with the first profile using it that
        also has a video encoder configuration
        """
        self.default_profiles = []
        self.active_sources = []
        for idx, video_source in enumerate(self.media.video_sources):
            token = video_source['token']
            profiles = [
                profile for profile in self.media.profiles
                if isinstance(profile.get('videoSourceConfiguration'), dict)
                and profile['videoSourceConfiguration'].get('sourceToken') == token
                and profile.get('videoEncoderConfiguration') is not None
            ]
            if not profiles:
                if idx == 0:
                    raise ConfigError('Unrecognized configuration')
                continue
            profile = profiles[0]
            encoder = profile['videoEncoderConfiguration'] or {}
            if not isinstance(encoder, dict):
                encoder = {}
            resolution = encoder.get('resolution') or {}
            rate_control = encoder.get('rateControl') or {}
            ptz = profile.get('PTZConfiguration')
            source = ActiveSource(
                source_token=token,
                profile_token=profile['token'],
                video_source_configuration_token=profile['videoSourceConfiguration']['token'],
                encoding=encoder.get('encoding'),
                width=resolution.get('width'),
                height=resolution.get('height'),
                fps=rate_control.get('frameRateLimit'),
                bitrate=rate_control.get('bitrateLimit'),
                ptz={'name': ptz.get('name'), 'token': ptz.get('token')}
                if isinstance(ptz, dict) else None,
            )
            if idx == 0:
                self.default_profile = profile
                self.active_source = source
            self.default_profiles.append(profile)
            self.active_sources.append(source)
        return self.active_sources

    @safeFunc
    async def connect(self):
        """ Connect to the camera and fill device information properties
        """
        await self.get_system_date_and_time()
        try:
            await self.device.get_services()
        except ONVIFError as err:
            logger.warning('GetServices failed on %s (%s), trying GetCapabilities', self, err)
            await self.device.get_capabilities()
        await asyncio.gather(self.media.get_profiles(), self.media.get_video_sources())
        self.get_active_sources()
        self.connected.send(self)
        return self
