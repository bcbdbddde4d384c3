""" WS-Discovery of ONVIF devices over UDP multicast
"""
import asyncio
import logging
import socket
from collections import namedtuple
from urllib.parse import unquote, urlsplit

import psutil

from .client import ONVIFCamera
from .definition import (MULTICAST_GROUP, MULTICAST_PORT, NVT_NS, SCOPE_HARDWARE,
                         SCOPE_NAME, SOAP_ENV, WSD, WSD_WSA, XSD, XSI)
from .exceptions import DiscoveryError, NetworkError, ProtocolError
from .soap import unwrap
from .utils import Signal, guid, linerase

logger = logging.getLogger('onvif_lite.discovery')

PROBE = (
    '<Envelope xmlns="%s" xmlns:dn="%s">'
    '<Header>'
    '<wsa:MessageID xmlns:wsa="%s">%%s</wsa:MessageID>'
    '<wsa:To xmlns:wsa="%s">urn:schemas-xmlsoap-org:ws:2005:04:discovery</wsa:To>'
    '<wsa:Action xmlns:wsa="%s">%s/Probe</wsa:Action>'
    '</Header>'
    '<Body>'
    '<Probe xmlns="%s" xmlns:xsd="%s" xmlns:xsi="%s">'
    '<Types>dn:NetworkVideoTransmitter</Types>'
    '<Scopes />'
    '</Probe>'
    '</Body>'
    '</Envelope>'
) % (SOAP_ENV, NVT_NS, WSD_WSA, WSD_WSA, WSD_WSA, WSD, WSD, XSD, XSI)

MULTICAST_TTL = 2

DiscoveredDevice = namedtuple('DiscoveredDevice', (
    'urn', 'xaddrs', 'scopes', 'name', 'hardware', 'remote_address', 'match',
))


def match_xaddr(xaddrs, address):
    """ The XAddr on the address the reply came from, else the first one """
    for xaddr in xaddrs:
        if urlsplit(xaddr).hostname == address:
            return xaddr
    return xaddrs[0]


def scope_value(scopes, prefix):
    for scope in scopes:
        if scope.startswith(prefix):
            return unquote(scope[len(prefix):])
    return None


def interface_address(device):
    """ First IPv4 address of a network interface, None when it has none """
    for address in psutil.net_if_addrs().get(device, ()):
        if address.family == socket.AF_INET:
            return address.address
    logger.warning('Interface %s has no IPv4 address, probing on the default route', device)
    return None


def _text(value):
    if isinstance(value, dict):
        return value.get('_', '')
    return value if isinstance(value, str) else ''


class _ProbeSweep:
    """ Replies collected by one `Discovery.probe` call """

    def __init__(self, discovery, resolve):
        self.discovery = discovery
        self.resolve = resolve
        self.devices = {}
        self.errors = []

    def fail(self, err, xml):
        logger.debug('Bad discovery reply: %s', err)
        self.errors.append(err)
        self.discovery.error.send(err, xml)

    def handle(self, data, remote_address):
        xml = data.decode('utf-8', errors='replace')
        try:
            body, xml = unwrap(xml)
        except ProtocolError as err:
            self.fail(err, xml)
            return
        result = linerase(body, array=('probeMatch',))
        matches = result.get('probeMatches') if isinstance(result, dict) else None
        if not isinstance(matches, dict) or not matches.get('probeMatch'):
            self.fail(ProtocolError('Wrong SOAP message from %s:%s' % remote_address[:2], xml=xml), xml)
            return
        for match in matches['probeMatch']:
            reference = match.get('endpointReference') if isinstance(match, dict) else None
            urn = _text(reference.get('address')) if isinstance(reference, dict) else ''
            if not urn:
                self.fail(ProtocolError('ProbeMatch without endpoint address from %s:%s'
                                        % remote_address[:2], xml=xml), xml)
                continue
            # one device answers once per network adapter in its subnet
            if urn in self.devices:
                continue
            try:
                device = self._device(urn, match, remote_address)
            except ProtocolError as err:
                self.fail(err, xml)
                continue
            self.devices[urn] = device
            self.discovery.device.send(device, remote_address, xml)

    def _device(self, urn, match, remote_address):
        xaddrs = _text(match.get('XAddrs')).split()
        scopes = _text(match.get('scopes')).split()
        if not self.resolve:
            return DiscoveredDevice(
                urn=urn,
                xaddrs=xaddrs,
                scopes=scopes,
                name=scope_value(scopes, SCOPE_NAME),
                hardware=scope_value(scopes, SCOPE_HARDWARE),
                remote_address=remote_address,
                match=match,
            )
        if not xaddrs:
            raise ProtocolError('ProbeMatch of %s without XAddrs' % urn)
        uri = urlsplit(match_xaddr(xaddrs, remote_address[0]))
        secure = uri.scheme == 'https'
        path = uri.path or '/onvif/device_service'
        return ONVIFCamera(
            uri.hostname,
            uri.port or (443 if secure else 80),
            path='%s?%s' % (path, uri.query) if uri.query else path,
            use_secure=secure,
            urn=urn,
        )


class _ProbeProtocol(asyncio.DatagramProtocol):

    def __init__(self, sweep):
        self.sweep = sweep

    def datagram_received(self, data, addr):
        self.sweep.handle(data, addr)

    def error_received(self, exc):
        logger.warning('Discovery socket error: %s', exc)
        self.sweep.discovery.error.send(exc, None)


class Discovery:
    """
    WS-Discovery client.

    >>> discovery = Discovery()
    >>> discovery.device.connect(lambda cam, remote, xml: print(cam))
    >>> cameras = await discovery.probe(timeout=3)

    Signals: `device` (camera or record, remote address, reply text) once per
    new device and `error` (error, reply text) for every bad reply.
    """
    def __init__(self):
        self.device = Signal('device')
        self.error = Signal('error')

    async def open_endpoint(self, protocol, bind_ip=None, port=None):
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, MULTICAST_TTL)
            if bind_ip:
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(bind_ip))
            sock.bind((bind_ip or '', port or 0))
            sock.setblocking(False)
            loop = asyncio.get_running_loop()
            transport, _ = await loop.create_datagram_endpoint(lambda: protocol, sock=sock)
        except OSError as err:
            sock.close()
            raise NetworkError(err, errno=err.errno) from err
        return transport

    async def probe(self, timeout=5, resolve=True, message_id=None, device=None, listening_port=None):
        """
        Send one Probe and collect the answers for `timeout` seconds.

        :param resolve: return `ONVIFCamera` objects instead of `DiscoveredDevice` records
        :param message_id: uuid of the probe, random by default
        :param device: name of the network interface to probe on
        :param listening_port: local UDP port, ephemeral by default
        :return: one camera or record per device
        :raises DiscoveryError: at least one reply was not a valid ProbeMatches
        """
        message = PROBE % ('urn:uuid:%s' % (message_id or guid()))
        bind_ip = interface_address(device) if device else None
        sweep = _ProbeSweep(self, resolve)
        transport = await self.open_endpoint(_ProbeProtocol(sweep), bind_ip, listening_port)
        try:
            transport.sendto(message.encode('utf-8'), (MULTICAST_GROUP, MULTICAST_PORT))
            await asyncio.sleep(timeout)
        finally:
            transport.close()
        if sweep.errors:
            raise DiscoveryError(sweep.errors)
        return list(sweep.devices.values())
