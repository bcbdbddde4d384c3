""" Device management service (ver10)
"""
import logging
from urllib.parse import urlsplit
from xml.sax.saxutils import escape

from .exceptions import ONVIFError, ProtocolError
from .service import ONVIFService, text, tt
from .utils import as_list, linerase, safeFunc

logger = logging.getLogger('onvif_lite.device')

CAPABILITY_SERVICES = ('PTZ', 'media', 'imaging', 'events', 'device', 'analytics')


class Device(ONVIFService):
    """ Device methods. `services`, `scopes`, `ntp`, `dns` and
    `network_interfaces` keep the last answer of the matching call.
    """
    service = 'device'

    def __init__(self, camera):
        super().__init__(camera)
        self.services = []
        self.media2_support = False
        self.scopes = []
        self.service_capabilities = {}
        self.device_information = None
        self.ntp = None
        self.dns = None
        self.network_interfaces = None

    async def get_system_date_and_time(self):
        return await self.camera.get_system_date_and_time()

    @safeFunc
    async def set_system_date_and_time(self, date_time_type, daylight_savings=False,
                                       tz=None, date_time=None):
        """
        :param date_time_type: `Manual` or `NTP`
        :param tz: POSIX timezone string
        :param date_time: aware datetime to set, UTC is sent
        :return: the new device time
        """
        if date_time_type not in ('Manual', 'NTP'):
            raise ONVIFError('DateTimeType should be `Manual` or `NTP`')
        content = text('DateTimeType', date_time_type) + text('DaylightSavings', bool(daylight_savings))
        if tz is not None:
            content += '<TimeZone>%s</TimeZone>' % tt('TZ', escape(tz))
        if date_time is not None:
            content += (
                '<UTCDateTime>%s%s</UTCDateTime>' % (
                    tt('Time', text('Hour', date_time.hour) + text('Minute', date_time.minute)
                       + text('Second', date_time.second)),
                    tt('Date', text('Year', date_time.year) + text('Month', date_time.month)
                       + text('Day', date_time.day)),
                )
            )
        data = await self.call('SetSystemDateAndTime', content)
        if linerase(data).get('setSystemDateAndTimeResponse') != '':
            raise ProtocolError('Wrong `SetSystemDateAndTime` response')
        return await self.camera.get_system_date_and_time()

    @safeFunc
    async def get_services(self, include_capability=True):
        """ Returns information about services of the device and fills the
        camera service address table
        """
        data = await self.call('GetServices', text('IncludeCapability', include_capability))
        result = linerase(data, array=('service',))['getServicesResponse']
        self.services = result.get('service', []) if isinstance(result, dict) else []
        for service in self.services:
            # Axis cameras also return their own namespaces
            if not isinstance(service, dict) or not service.get('namespace') or not service.get('XAddr'):
                continue
            namespace = urlsplit(service['namespace'])
            parts = namespace.path.strip('/').split('/')
            if namespace.hostname != 'www.onvif.org' or len(parts) < 2:
                continue
            version, name = parts[0], parts[1]
            if name == 'media' and version == 'ver20':
                # Profile T devices expose Media2 next to the original Media
                self.media2_support = True
                name = 'media2'
            elif name == 'ptz':
                name = 'PTZ'
            self.camera.uri[name] = self.camera.parse_url(service['XAddr'])
        return result

    @safeFunc
    async def get_capabilities(self, category=('All',)):
        """ Older replacement of `get_services`, fills the address table
        from the XAddr of every capability
        """
        data = await self.call('GetCapabilities', ''.join(text('Category', c) for c in category))
        capabilities = linerase(data)['getCapabilitiesResponse']['capabilities']
        self.camera.capabilities = capabilities
        uri = self.camera.uri
        for name in CAPABILITY_SERVICES:
            capability = capabilities.get(name)
            if isinstance(capability, dict) and capability.get('XAddr'):
                uri[name] = self.camera.parse_url(capability['XAddr'])
        extension = capabilities.get('extension')
        if isinstance(extension, dict):
            for name, capability in extension.items():
                if isinstance(capability, dict) and capability.get('XAddr'):
                    uri[name] = capability['XAddr']
            # Profile G NVR with 'replay' but without 'recording'
            if uri.get('replay') and not uri.get('recording'):
                recording = uri['replay'].replace('replay', 'recording')
                message = 'Adding %s for bad Profile G device' % recording
                logger.warning(message)
                self.camera.warn.send(message)
                uri['recording'] = recording
        return {'capabilities': capabilities}

    @safeFunc
    async def get_device_information(self):
        data = await self.call('GetDeviceInformation')
        self.device_information = linerase(data)['getDeviceInformationResponse']
        return self.device_information

    @safeFunc
    async def get_hostname(self):
        data = await self.call('GetHostname')
        return linerase(data)['getHostnameResponse']['hostnameInformation']

    @safeFunc
    async def get_scopes(self):
        data = await self.call('GetScopes')
        response = linerase(data, array=('scopes',))['getScopesResponse']
        self.scopes = response.get('scopes', []) if isinstance(response, dict) else []
        return self.scopes

    @safeFunc
    async def set_scopes(self, scopes):
        """ Replace the configurable scopes, returns the new scope list """
        data = await self.call('SetScopes', ''.join(text('Scopes', uri) for uri in scopes))
        if linerase(data).get('setScopesResponse') != '':
            raise ProtocolError('Wrong `SetScopes` response')
        return await self.get_scopes()

    @safeFunc
    async def get_service_capabilities(self):
        data = await self.call('GetServiceCapabilities')
        capabilities = linerase(data)['getServiceCapabilitiesResponse']['capabilities']
        self.service_capabilities = {
            'network': capabilities.get('network'),
            'security': capabilities.get('security'),
            'system': capabilities.get('system'),
        }
        misc = capabilities.get('misc')
        if isinstance(misc, dict):
            misc = dict(misc)
            commands = misc.get('auxiliaryCommands', '')
            misc['auxiliaryCommands'] = commands.split() if isinstance(commands, str) else []
            self.service_capabilities['misc'] = misc
        return self.service_capabilities

    @safeFunc
    async def system_reboot(self):
        data = await self.call('SystemReboot')
        return linerase(data)['systemRebootResponse']['message']

    @safeFunc
    async def get_ntp(self):
        data = await self.call('GetNTP')
        self.ntp = linerase(data, array=('NTPManual', 'NTPFromDHCP'))['getNTPResponse']['NTPInformation']
        return self.ntp

    @safeFunc
    async def set_ntp(self, from_dhcp=False, ntp_manual=()):
        """
        :param ntp_manual: list of dicts with `type` (IPv4/IPv6/DNS) and one
          of `IPv4Address`, `IPv6Address`, `DNSname`
        """
        content = text('FromDHCP', from_dhcp)
        for server in ntp_manual:
            if not server.get('type'):
                continue
            content += '<NTPManual>%s%s%s%s</NTPManual>' % (
                tt('Type', escape(server['type'])),
                tt('IPv4Address', escape(server['IPv4Address'])) if server.get('IPv4Address') else '',
                tt('IPv6Address', escape(server['IPv6Address'])) if server.get('IPv6Address') else '',
                tt('DNSname', escape(server['DNSname'])) if server.get('DNSname') else '',
            )
        data = await self.call('SetNTP', content)
        return linerase(data)['setNTPResponse']

    @safeFunc
    async def get_dns(self):
        data = await self.call('GetDNS')
        self.dns = linerase(data, array=('DNSManual', 'DNSFromDHCP', 'searchDomain'))['getDNSResponse']['DNSInformation']
        return self.dns

    @safeFunc
    async def get_network_interfaces(self):
        data = await self.call('GetNetworkInterfaces')
        response = linerase(data, array=('networkInterfaces',))['getNetworkInterfacesResponse']
        self.network_interfaces = as_list(response.get('networkInterfaces') if isinstance(response, dict) else None)
        return self.network_interfaces
