""" PTZ service (ver20)
"""
import re
from xml.sax.saxutils import quoteattr

from .definition import SCHEMA_NS
from .exceptions import ONVIFError
from .service import ONVIFService, text
from .utils import linerase, safeFunc, xml_value

DURATION_RE = re.compile(r'^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d*)?)S)?)?$')
FLAT_KEYS = ('pan', 'x', 'tilt', 'y', 'zoom')


def _element(name, x, y=None, space=None):
    attrs = 'x=%s' % quoteattr(xml_value(x))
    if y is not None:
        attrs += ' y=%s' % quoteattr(xml_value(y))
    if space:
        attrs += ' space=%s' % quoteattr(space)
    return '<%s %s xmlns="%s"/>' % (name, attrs, SCHEMA_NS)


def vector_xml(vector):
    """
    Render a PTZ vector or speed. Two shapes are accepted:

    - structured: ``{'panTilt': {'x': 0.1, 'y': 0, 'space': ...}, 'zoom': {'x': 0.5}}``
    - flat: ``{'pan': 0.1, 'tilt': 0, 'zoom': 0.5}`` (or ``x``/``y`` for pan/tilt)

    A flat vector only moves the axes it names: PanTilt is sent when pan or
    tilt is given (the missing one is 0) and Zoom when zoom is given.
    """
    structured = 'panTilt' in vector or isinstance(vector.get('zoom'), dict)
    if structured:
        xml = ''
        pan_tilt = vector.get('panTilt')
        if pan_tilt:
            xml += _element('PanTilt', pan_tilt.get('x', 0), pan_tilt.get('y', 0), pan_tilt.get('space'))
        zoom = vector.get('zoom')
        if zoom:
            xml += _element('Zoom', zoom.get('x', 0), space=zoom.get('space'))
        return xml
    if not any(key in vector for key in FLAT_KEYS):
        raise ONVIFError('Empty PTZ vector: %r' % (vector,))
    pan = vector.get('pan', vector.get('x'))
    tilt = vector.get('tilt', vector.get('y'))
    xml = ''
    if pan is not None or tilt is not None:
        xml += _element('PanTilt', pan or 0, tilt or 0)
    if vector.get('zoom') is not None:
        xml += _element('Zoom', vector['zoom'])
    return xml


def duration(timeout):
    """ Seconds as an xs:duration, strings are passed as is """
    if isinstance(timeout, str):
        return timeout
    return 'PT%sS' % xml_value(float(timeout))


def seconds(timeout):
    """ Number of seconds of a number or of an xs:duration up to days """
    if not isinstance(timeout, str):
        return float(timeout)
    match = DURATION_RE.match(timeout)
    if not match:
        raise ONVIFError('Unsupported duration: %s' % timeout)
    days, hours, minutes, secs = (float(value or 0) for value in match.groups())
    return ((days * 24 + hours) * 60 + minutes) * 60 + secs


class PTZ(ONVIFService):
    """ PTZ methods. `nodes`, `configurations` and `presets` are dicts by
    token, filled by the matching `get_*` call.
    """
    service = 'PTZ'

    def __init__(self, camera):
        super().__init__(camera)
        self.nodes = {}
        self.configurations = {}
        self.presets = {}

    def _profile(self, profile_token):
        return self.active('profile_token') if profile_token is None else profile_token

    @safeFunc
    async def get_nodes(self):
        data = await self.call('GetNodes')
        response = linerase(data, array=('PTZNode',))['getNodesResponse']
        nodes = response.get('PTZNode', []) if isinstance(response, dict) else []
        self.nodes = {node['token']: node for node in nodes}
        return nodes

    @safeFunc
    async def get_configurations(self):
        data = await self.call('GetConfigurations')
        response = linerase(data, array=('PTZConfiguration',))['getConfigurationsResponse']
        configurations = response.get('PTZConfiguration', []) if isinstance(response, dict) else []
        self.configurations = {configuration['token']: configuration for configuration in configurations}
        return configurations

    @safeFunc
    async def get_configuration(self, configuration_token):
        data = await self.call('GetConfiguration', text('PTZConfigurationToken', configuration_token))
        return linerase(data)['getConfigurationResponse']['PTZConfiguration']

    @safeFunc
    async def get_configuration_options(self, configuration_token):
        data = await self.call('GetConfigurationOptions', text('ConfigurationToken', configuration_token))
        return linerase(data)['getConfigurationOptionsResponse']['PTZConfigurationOptions']

    @safeFunc
    async def get_presets(self, profile_token=None):
        data = await self.call('GetPresets', text('ProfileToken', self._profile(profile_token)))
        response = linerase(data, array=('preset',))['getPresetsResponse']
        presets = response.get('preset', []) if isinstance(response, dict) else []
        self.presets = {preset['token']: preset for preset in presets}
        return presets

    @safeFunc
    async def set_preset(self, preset_name, profile_token=None, preset_token=None):
        """ Save the current position, returns the preset token """
        data = await self.call('SetPreset', text('ProfileToken', self._profile(profile_token))
                               + text('PresetName', preset_name)
                               + text('PresetToken', preset_token))
        return linerase(data)['setPresetResponse']['presetToken']

    @safeFunc
    async def remove_preset(self, preset_token, profile_token=None):
        await self.call('RemovePreset', text('ProfileToken', self._profile(profile_token))
                        + text('PresetToken', preset_token))

    @safeFunc
    async def goto_preset(self, preset_token, profile_token=None, speed=None):
        await self.call('GotoPreset', text('ProfileToken', self._profile(profile_token))
                        + text('PresetToken', preset_token)
                        + ('<Speed>%s</Speed>' % vector_xml(speed) if speed else ''))

    @safeFunc
    async def goto_home_position(self, profile_token=None, speed=None):
        await self.call('GotoHomePosition', text('ProfileToken', self._profile(profile_token))
                        + ('<Speed>%s</Speed>' % vector_xml(speed) if speed else ''))

    @safeFunc
    async def set_home_position(self, profile_token=None):
        await self.call('SetHomePosition', text('ProfileToken', self._profile(profile_token)))

    @safeFunc
    async def get_status(self, profile_token=None):
        data = await self.call('GetStatus', text('ProfileToken', self._profile(profile_token)))
        return linerase(data)['getStatusResponse']['PTZStatus']

    @safeFunc
    async def absolute_move(self, position, profile_token=None, speed=None):
        if not position:
            raise ONVIFError("'position' is required")
        await self.call('AbsoluteMove', text('ProfileToken', self._profile(profile_token))
                        + '<Position>%s</Position>' % vector_xml(position)
                        + ('<Speed>%s</Speed>' % vector_xml(speed) if speed else ''))

    @safeFunc
    async def relative_move(self, translation, profile_token=None, speed=None):
        if not translation:
            raise ONVIFError("'translation' is required")
        await self.call('RelativeMove', text('ProfileToken', self._profile(profile_token))
                        + '<Translation>%s</Translation>' % vector_xml(translation)
                        + ('<Speed>%s</Speed>' % vector_xml(speed) if speed else ''))

    @safeFunc
    async def continuous_move(self, velocity, profile_token=None, timeout=None):
        """
        Move until `stop` or until the timeout.

        :param velocity: PTZ vector, see `vector_xml`
        :param timeout: seconds, or an xs:duration string
        """
        if not velocity:
            raise ONVIFError("'velocity' is required")
        await self.call('ContinuousMove', text('ProfileToken', self._profile(profile_token))
                        + '<Velocity>%s</Velocity>' % vector_xml(velocity)
                        + (text('Timeout', duration(timeout)) if timeout else ''))

    @safeFunc
    async def stop(self, profile_token=None, pan_tilt=True, zoom=True):
        await self.call('Stop', text('ProfileToken', self._profile(profile_token))
                        + text('PanTilt', bool(pan_tilt)) + text('Zoom', bool(zoom)))
