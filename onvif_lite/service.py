""" Base class of the ONVIF service facades
"""
from xml.sax.saxutils import escape

from .definition import SCHEMA_NS, SERVICES
from .exceptions import ConfigError
from .utils import xml_value


def tt(name, value):
    """ Element of the ONVIF schema namespace """
    return '<%s xmlns="%s">%s</%s>' % (name, SCHEMA_NS, value, name)


def text(name, value):
    """ Element with an escaped text value, nothing when value is None """
    if value is None:
        return ''
    return '<%s>%s</%s>' % (name, escape(xml_value(value)), name)


class ONVIFService:
    """
    Python Implemention of an ONVIF Service facade.
    A facade builds the SOAP body of an operation, sends it through the
    camera request pipeline and normalizes the answer with `linerase`.

    >>> camera = ONVIFCamera('192.168.0.112', 80, 'admin', 'foscam')
    >>> await camera.connect()
    >>> info = await camera.device.get_device_information()
    >>> print(info['manufacturer'])
    """
    #: key in `SERVICES` and in the camera service address table
    service = None

    def __init__(self, camera):
        self.camera = camera

    @property
    def ns(self):
        return SERVICES[self.service].ns

    def body(self, operation, content='', ns=None):
        return '<%s xmlns="%s">%s</%s>' % (operation, ns or self.ns, content, operation)

    async def request(self, body, service=None, **kwargs):
        return await self.camera.request(body, service=service or self.service, **kwargs)

    async def call(self, operation, content='', **kwargs):
        """ Send `operation` and return the body tree """
        data, _ = await self.request(self.body(operation, content), **kwargs)
        return data

    def active(self, field):
        """ Read a token of the camera active source """
        source = self.camera.active_source
        if source is None:
            raise ConfigError('No active source, connect() first or pass the token explicitly')
        return getattr(source, field)
