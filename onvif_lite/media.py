""" Media (ver10) and Media2 (ver20) services
"""
from functools import partialmethod
from xml.sax.saxutils import escape, quoteattr

from .definition import SCHEMA_NS
from .service import ONVIFService, text, tt
from .utils import as_list, linerase, safeFunc, xml_value

# fields that stay lists in profiles and configurations
CONFIGURATION_ARRAYS = ('configurations', 'analyticsModule', 'rule', 'simpleItem', 'elementItem')
OPTIONS_ARRAYS = (
    'videoSourceTokensAvailable', 'resolutionsAvailable', 'mpeg4ProfilesSupported',
    'H264ProfilesSupported', 'inputTokensAvailable', 'options', 'compressionType',
    'outputTokensAvailable', 'sendPrimacyOptions',
)

# Media ver10 transport protocol -> Media2 stream protocol
MEDIA2_PROTOCOLS = {
    'UDP': 'RtspUnicast',
    'RTSP': 'RtspUnicast',
    'TCP': 'RTSP',
    'HTTP': 'RtspOverHttp',
}

# attributes of a configuration element, other keys are child elements
CONFIGURATION_ATTRIBUTES = {'token': 'token', 'guaranteedFrameRate': 'GuaranteedFrameRate'}


def schema_xml(value, ns=None):
    """ Render a normalized configuration (as `get_configuration` returns it)
    back to schema elements, keys in their original order
    """
    if not isinstance(value, dict):
        return escape(xml_value(value))
    xmlns = ' xmlns="%s"' % ns if ns else ''
    parts = []
    for key, item in value.items():
        name = key[0].upper() + key[1:]
        for member in item if isinstance(item, list) else [item]:
            if member is not None:
                parts.append('<%s%s>%s</%s>' % (name, xmlns, schema_xml(member), name))
    return ''.join(parts)


class Media(ONVIFService):
    """ Media ver10 methods (Profile S). `profiles` and `video_sources` keep
    the answers of `get_profiles` and `get_video_sources`, the camera builds
    its active sources from them.
    """
    service = 'media'

    def __init__(self, camera):
        super().__init__(camera)
        self.profiles = []
        self.video_sources = []
        self.audio_sources = []

    @property
    def media2_support(self):
        return self.camera.device.media2_support

    @safeFunc
    async def get_profiles(self):
        data = await self.call('GetProfiles')
        response = linerase(data, array=CONFIGURATION_ARRAYS + ('profiles',))['getProfilesResponse']
        self.profiles = response.get('profiles', []) if isinstance(response, dict) else []
        return self.profiles

    @safeFunc
    async def get_profile(self, profile_token):
        data = await self.call('GetProfile', text('ProfileToken', profile_token))
        return linerase(data, array=CONFIGURATION_ARRAYS)['getProfileResponse']['profile']

    @safeFunc
    async def create_profile(self, name, token=None):
        data = await self.call('CreateProfile', text('Name', name) + text('Token', token))
        return linerase(data)['createProfileResponse']['profile']

    @safeFunc
    async def delete_profile(self, profile_token):
        await self.call('DeleteProfile', text('ProfileToken', profile_token))

    @safeFunc
    async def get_video_sources(self):
        data = await self.call('GetVideoSources')
        response = linerase(data, array=('videoSources',))['getVideoSourcesResponse']
        self.video_sources = response.get('videoSources', []) if isinstance(response, dict) else []
        return self.video_sources

    @safeFunc
    async def get_audio_sources(self):
        data = await self.call('GetAudioSources')
        response = linerase(data, array=('audioSources',))['getAudioSourcesResponse']
        self.audio_sources = response.get('audioSources', []) if isinstance(response, dict) else []
        return self.audio_sources

    @safeFunc
    async def get_configurations(self, entity):
        """ All configurations of one kind, `entity` is the operation infix:
        VideoSource, VideoEncoder, AudioSource, AudioEncoder, VideoAnalytics,
        Metadata, AudioOutput or AudioDecoder
        """
        data = await self.call('Get%sConfigurations' % entity)
        response = linerase(data, array=CONFIGURATION_ARRAYS)['get%sConfigurationsResponse' % entity]
        return as_list(response.get('configurations') if isinstance(response, dict) else None)

    @safeFunc
    async def get_compatible_configurations(self, entity, profile_token=None):
        if profile_token is None:
            profile_token = self.active('profile_token')
        data = await self.call('GetCompatible%sConfigurations' % entity, text('ProfileToken', profile_token))
        response = linerase(data, array=CONFIGURATION_ARRAYS)['getCompatible%sConfigurationsResponse' % entity]
        return as_list(response.get('configurations') if isinstance(response, dict) else None)

    @safeFunc
    async def get_configuration(self, entity, configuration_token):
        data = await self.call('Get%sConfiguration' % entity, text('ConfigurationToken', configuration_token))
        return linerase(data, array=CONFIGURATION_ARRAYS)['get%sConfigurationResponse' % entity]['configuration']

    @safeFunc
    async def get_configuration_options(self, entity, configuration_token=None, profile_token=None):
        data = await self.call('Get%sConfigurationOptions' % entity,
                               text('ConfigurationToken', configuration_token)
                               + text('ProfileToken', profile_token))
        return linerase(data, array=OPTIONS_ARRAYS)['get%sConfigurationOptionsResponse' % entity]['options']

    get_video_source_configurations = partialmethod(get_configurations, 'VideoSource')
    get_video_encoder_configurations = partialmethod(get_configurations, 'VideoEncoder')
    get_audio_source_configurations = partialmethod(get_configurations, 'AudioSource')
    get_audio_encoder_configurations = partialmethod(get_configurations, 'AudioEncoder')
    get_video_analytics_configurations = partialmethod(get_configurations, 'VideoAnalytics')
    get_metadata_configurations = partialmethod(get_configurations, 'Metadata')
    get_audio_output_configurations = partialmethod(get_configurations, 'AudioOutput')
    get_audio_decoder_configurations = partialmethod(get_configurations, 'AudioDecoder')

    @safeFunc
    async def get_audio_outputs(self):
        data = await self.call('GetAudioOutputs')
        response = linerase(data, array=('audioOutputs',))['getAudioOutputsResponse']
        return response.get('audioOutputs', []) if isinstance(response, dict) else []

    @safeFunc
    async def add_configuration(self, entity, configuration_token, profile_token=None):
        """ Put a configuration of kind `entity` (VideoSource, VideoEncoder,
        PTZ, ...) into a profile, replacing the one it has
        """
        if profile_token is None:
            profile_token = self.active('profile_token')
        await self.call('Add%sConfiguration' % entity,
                        text('ProfileToken', profile_token) + text('ConfigurationToken', configuration_token))

    @safeFunc
    async def remove_configuration(self, entity, profile_token=None):
        if profile_token is None:
            profile_token = self.active('profile_token')
        await self.call('Remove%sConfiguration' % entity, text('ProfileToken', profile_token))

    @safeFunc
    async def set_configuration(self, entity, configuration, force_persistence=True):
        """
        Modify a configuration of kind `entity`.

        :param configuration: dict shaped like the `get_configuration` answer,
          usually that answer with some values changed
        """
        attributes = ''.join(
            ' %s=%s' % (name, quoteattr(xml_value(configuration[key])))
            for key, name in CONFIGURATION_ATTRIBUTES.items() if configuration.get(key) is not None
        )
        children = {key: value for key, value in configuration.items() if key not in CONFIGURATION_ATTRIBUTES}
        await self.call('Set%sConfiguration' % entity,
                        '<Configuration%s>%s</Configuration>' % (attributes, schema_xml(children, SCHEMA_NS))
                        + text('ForcePersistence', force_persistence))

    add_video_source_configuration = partialmethod(add_configuration, 'VideoSource')
    add_video_encoder_configuration = partialmethod(add_configuration, 'VideoEncoder')
    add_audio_source_configuration = partialmethod(add_configuration, 'AudioSource')
    add_audio_encoder_configuration = partialmethod(add_configuration, 'AudioEncoder')
    add_ptz_configuration = partialmethod(add_configuration, 'PTZ')
    add_video_analytics_configuration = partialmethod(add_configuration, 'VideoAnalytics')
    add_metadata_configuration = partialmethod(add_configuration, 'Metadata')
    add_audio_output_configuration = partialmethod(add_configuration, 'AudioOutput')
    add_audio_decoder_configuration = partialmethod(add_configuration, 'AudioDecoder')

    remove_video_source_configuration = partialmethod(remove_configuration, 'VideoSource')
    remove_video_encoder_configuration = partialmethod(remove_configuration, 'VideoEncoder')
    remove_audio_source_configuration = partialmethod(remove_configuration, 'AudioSource')
    remove_audio_encoder_configuration = partialmethod(remove_configuration, 'AudioEncoder')
    remove_ptz_configuration = partialmethod(remove_configuration, 'PTZ')
    remove_video_analytics_configuration = partialmethod(remove_configuration, 'VideoAnalytics')
    remove_metadata_configuration = partialmethod(remove_configuration, 'Metadata')
    remove_audio_output_configuration = partialmethod(remove_configuration, 'AudioOutput')
    remove_audio_decoder_configuration = partialmethod(remove_configuration, 'AudioDecoder')

    set_video_source_configuration = partialmethod(set_configuration, 'VideoSource')
    set_video_encoder_configuration = partialmethod(set_configuration, 'VideoEncoder')
    set_audio_source_configuration = partialmethod(set_configuration, 'AudioSource')
    set_audio_encoder_configuration = partialmethod(set_configuration, 'AudioEncoder')
    set_video_analytics_configuration = partialmethod(set_configuration, 'VideoAnalytics')
    set_metadata_configuration = partialmethod(set_configuration, 'Metadata')
    set_audio_output_configuration = partialmethod(set_configuration, 'AudioOutput')
    set_audio_decoder_configuration = partialmethod(set_configuration, 'AudioDecoder')

    @safeFunc
    async def get_stream_uri(self, profile_token=None, stream='RTP-Unicast', protocol='RTSP'):
        """
        Receive stream URI. Devices with Media2 support are asked through
        Media2 with the protocol translated.

        :param stream: `RTP-Unicast` or `RTP-Multicast`
        :param protocol: `UDP`, `TCP`, `RTSP` or `HTTP`
        :return: dict with at least the `uri` key
        """
        if profile_token is None:
            profile_token = self.active('profile_token')
        if self.media2_support:
            media2_protocol = MEDIA2_PROTOCOLS.get(protocol, protocol)
            if stream == 'RTP-Multicast' and media2_protocol == 'RtspUnicast':
                media2_protocol = 'RtspMulticast'
            return await self.camera.media2.get_stream_uri(profile_token, media2_protocol)
        data = await self.call(
            'GetStreamUri',
            '<StreamSetup>%s%s</StreamSetup>%s' % (
                tt('Stream', stream),
                tt('Transport', text('Protocol', protocol)),
                text('ProfileToken', profile_token),
            ),
        )
        return linerase(data)['getStreamUriResponse']['mediaUri']

    @safeFunc
    async def get_snapshot_uri(self, profile_token=None):
        if profile_token is None:
            profile_token = self.active('profile_token')
        if self.media2_support:
            return await self.camera.media2.get_snapshot_uri(profile_token)
        data = await self.call('GetSnapshotUri', text('ProfileToken', profile_token))
        return linerase(data)['getSnapshotUriResponse']['mediaUri']

    async def _profile_command(self, operation, profile_token):
        if profile_token is None:
            profile_token = self.active('profile_token')
        await self.call(operation, text('ProfileToken', profile_token))

    @safeFunc
    async def start_multicast_streaming(self, profile_token=None):
        await self._profile_command('StartMulticastStreaming', profile_token)

    @safeFunc
    async def stop_multicast_streaming(self, profile_token=None):
        await self._profile_command('StopMulticastStreaming', profile_token)

    @safeFunc
    async def set_synchronization_point(self, profile_token=None):
        """ Ask the device for an I-frame (and a full PTZ/event status in the
        metadata stream) on every stream of the profile
        """
        await self._profile_command('SetSynchronizationPoint', profile_token)

    @safeFunc
    async def get_video_source_modes(self, video_source_token=None):
        if video_source_token is None:
            video_source_token = self.active('source_token')
        data = await self.call('GetVideoSourceModes', text('VideoSourceToken', video_source_token))
        response = linerase(data, array=('videoSourceModes',))['getVideoSourceModesResponse']
        modes = response.get('videoSourceModes', []) if isinstance(response, dict) else []
        return [
            dict(mode, encodings=mode.get('encodings', '').split())
            if isinstance(mode.get('encodings'), str) else mode
            for mode in modes
        ]

    @safeFunc
    async def set_video_source_mode(self, video_source_mode_token, video_source_token=None):
        """ Switch the video source mode, the answer tells whether the device reboots """
        if video_source_token is None:
            video_source_token = self.active('source_token')
        data = await self.call('SetVideoSourceMode', text('VideoSourceToken', video_source_token)
                               + text('VideoSourceModeToken', video_source_mode_token))
        return linerase(data)['setVideoSourceModeResponse']

    def _osd_service(self):
        return 'media2' if self.media2_support else 'media'

    @safeFunc
    async def get_osds(self, configuration_token=None, osd_token=None):
        service = self._osd_service()
        body = self.body('GetOSDs', text('ConfigurationToken', configuration_token)
                         + text('OSDToken', osd_token), ns=self.camera.media2.ns if service == 'media2' else None)
        data, _ = await self.request(body, service=service)
        response = linerase(data, array=('OSDs',))['getOSDsResponse']
        return response if isinstance(response, dict) else {'OSDs': []}

    @safeFunc
    async def get_osd_options(self, configuration_token=None):
        if configuration_token is None:
            configuration_token = self.active('video_source_configuration_token')
        service = self._osd_service()
        body = self.body('GetOSDOptions', text('ConfigurationToken', configuration_token),
                         ns=self.camera.media2.ns if service == 'media2' else None)
        data, _ = await self.request(body, service=service)
        return linerase(data)['getOSDOptionsResponse']


class Media2(ONVIFService):
    """ Media ver20 methods (Profile T) """
    service = 'media2'

    @safeFunc
    async def get_profiles(self, token=None, types=('All',)):
        """
        :param token: fetch exactly one profile
        :param types: configuration types to include, `All` for every one
        """
        data = await self.call('GetProfiles', text('Token', token) + text('Type', ' '.join(types)))
        response = linerase(data, array=('profiles',))['getProfilesResponse']
        return response.get('profiles', []) if isinstance(response, dict) else []

    @safeFunc
    async def create_profile(self, name, configurations=()):
        """
        :param configurations: `{'type': ..., 'token': ...}` dicts, the token
          may be left out to let the device pick one
        :return: token of the new profile
        """
        content = ''.join(
            '<Configuration>%s%s</Configuration>' % (text('Type', item['type']), text('Token', item.get('token')))
            for item in configurations
        )
        data = await self.call('CreateProfile', text('Name', name) + content)
        return linerase(data)['createProfileResponse']['token']

    @safeFunc
    async def delete_profile(self, token):
        await self.call('DeleteProfile', text('Token', token))

    @safeFunc
    async def get_video_encoder_configurations(self, profile_token=None, configuration_token=None):
        data = await self.call('GetVideoEncoderConfigurations',
                               text('ConfigurationToken', configuration_token)
                               + text('ProfileToken', profile_token))
        response = linerase(data, array=('configurations',))['getVideoEncoderConfigurationsResponse']
        return response.get('configurations', []) if isinstance(response, dict) else []

    @safeFunc
    async def get_stream_uri(self, profile_token=None, protocol='RtspUnicast'):
        """
        :param protocol: `RtspUnicast`, `RtspMulticast`, `RTSP` or `RtspOverHttp`
        :return: dict with the `uri` key
        """
        if profile_token is None:
            profile_token = self.active('profile_token')
        data = await self.call('GetStreamUri', text('Protocol', protocol) + text('ProfileToken', profile_token))
        return {'uri': linerase(data)['getStreamUriResponse']['uri']}

    @safeFunc
    async def get_snapshot_uri(self, profile_token=None):
        if profile_token is None:
            profile_token = self.active('profile_token')
        data = await self.call('GetSnapshotUri', text('ProfileToken', profile_token))
        return {'uri': linerase(data)['getSnapshotUriResponse']['uri']}
