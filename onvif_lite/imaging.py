""" Imaging service (ver20)
"""
from xml.sax.saxutils import escape

from .exceptions import ONVIFError
from .service import ONVIFService, text, tt
from .utils import linerase, safeFunc, xml_value

# ImagingSettings20 children, in schema order
SETTINGS = (
    ('brightness', 'Brightness'),
    ('color_saturation', 'ColorSaturation'),
    ('contrast', 'Contrast'),
    ('ir_cut_filter', 'IrCutFilter'),
    ('sharpness', 'Sharpness'),
)


class Imaging(ONVIFService):
    service = 'imaging'

    def _source(self, video_source_token):
        return self.active('source_token') if video_source_token is None else video_source_token

    @safeFunc
    async def get_imaging_settings(self, video_source_token=None):
        data = await self.call('GetImagingSettings', text('VideoSourceToken', self._source(video_source_token)))
        return linerase(data)['getImagingSettingsResponse']['imagingSettings']

    @safeFunc
    async def set_imaging_settings(self, video_source_token=None, force_persistence=None, **settings):
        """
        Change the basic image settings of a video source.

        >>> await camera.imaging.set_imaging_settings(brightness=60, ir_cut_filter='AUTO')
        """
        unknown = set(settings) - {key for key, _ in SETTINGS}
        if unknown:
            raise ONVIFError('Unknown imaging settings: %s' % ', '.join(sorted(unknown)))
        values = ''.join(tt(name, escape(xml_value(settings[key])))
                         for key, name in SETTINGS if settings.get(key) is not None)
        await self.call('SetImagingSettings', text('VideoSourceToken', self._source(video_source_token))
                        + '<ImagingSettings>%s</ImagingSettings>' % values
                        + text('ForcePersistence', force_persistence))
        return await self.get_imaging_settings(video_source_token)

    @safeFunc
    async def get_status(self, video_source_token=None):
        data = await self.call('GetStatus', text('VideoSourceToken', self._source(video_source_token)))
        return linerase(data)['getStatusResponse']['status']
