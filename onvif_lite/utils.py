""" XML helpers: parsing into an explicit-array tree and the `linerase` normalizer
"""
import functools
import logging
import re
import uuid
from datetime import datetime, timezone

from lxml import etree

from .exceptions import ONVIFError

logger = logging.getLogger('onvif_lite')

NUMBER_RE = re.compile(r'^-?([1-9]\d*|0)(\.\d*)?$')
DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(.\d+)?Z$')
XMLNS_RE = re.compile(r'xmlns([^=]*?)=(".*?")')

ATTRS_KEY = '$'
TEXT_KEY = '_'

_parser = etree.XMLParser(huge_tree=True, resolve_entities=False, no_network=True)


def safeFunc(func):
    """ wrap and transform exception of a coroutine function
    """
    @functools.wraps(func)
    async def wrapped(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ONVIFError:
            raise
        except Exception as err:
            raise ONVIFError(err) from err
    return wrapped


def guid():
    return str(uuid.uuid4())


def camel_name(tag):
    """ Strip the namespace prefix and lower the first letter unless the name
    starts with an acronym (UTCDateTime, PTZConfiguration, XAddrs stay as is)
    """
    name = etree.QName(tag).localname if tag.startswith('{') else tag.split(':')[-1]
    if len(name) > 1 and name[1].upper() != name[1]:
        return name[0].lower() + name[1:]
    return name


def element_to_tree(element):
    """ Convert an lxml element to the explicit-array form: children are always
    lists, attributes live under `$`, mixed text under `_`
    """
    attrs = {camel_name(key): value for key, value in element.attrib.items()}
    children = [child for child in element if isinstance(child.tag, str)]
    text = element.text or ''
    if not attrs and not children:
        return text
    node = {}
    if attrs:
        node[ATTRS_KEY] = attrs
    if text.strip():
        node[TEXT_KEY] = text
    for child in children:
        node.setdefault(camel_name(child.tag), []).append(element_to_tree(child))
    return node


def parse_xml(raw):
    """ Parse raw XML text into `{rootName: tree}`
    """
    if isinstance(raw, str):
        raw = raw.strip().encode('utf-8')
    root = etree.fromstring(raw, _parser)
    return {camel_name(root.tag): element_to_tree(root)}


def strip_xmlns(raw):
    return XMLNS_RE.sub('', raw)


def _whitespace(value):
    return isinstance(value, str) and value != '' and not value.strip()


def linerase(xml, array=(), name=None):
    """ Parse SOAP object to pretty python object

    :param xml: tree produced by `parse_xml` (or any part of it)
    :param array: field names that must stay lists even with a single item
    :param name: name of the field `xml` belongs to
    """
    if isinstance(xml, list):
        xml = [item for item in xml if not _whitespace(item)]
        if len(xml) == 1 and name not in array:
            xml = xml[0]
        else:
            return [linerase(item, array, name) for item in xml]
    if isinstance(xml, dict):
        obj = {}
        for key, value in xml.items():
            if key == ATTRS_KEY:
                # attributes and child elements share one namespace
                obj.update(linerase(value, array))
            else:
                obj[key] = linerase(value, array, key)
        return obj
    if xml == 'true':
        return True
    if xml == 'false':
        return False
    if isinstance(xml, str):
        if NUMBER_RE.match(xml):
            return float(xml)
        if DATE_RE.match(xml):
            return parse_date(xml)
    return xml


def parse_date(value):
    # fromisoformat is picky about fraction width before 3.11
    date, fraction = value[:19], value[20:-1]
    result = datetime.strptime(date, '%Y-%m-%dT%H:%M:%S').replace(tzinfo=timezone.utc)
    if fraction:
        result = result.replace(microsecond=int(fraction[:6].ljust(6, '0')))
    return result


def as_list(value):
    """ Undo a single-item collapse for a field that was not declared as array """
    if value is None or value == '':
        return []
    return value if isinstance(value, list) else [value]


def xml_value(value):
    """ Render a python value the way ONVIF expects it inside a tag """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Signal:
    """
    A list of receivers called with the same arguments each time `send`
    is called. Receivers are informational: an exception raised by one is
    logged and does not reach the sender.

    >>> camera.raw_request.connect(print)
    >>> camera.raw_request.disconnect(print)
    """
    def __init__(self, name):
        self.name = name
        self.receivers = []

    def connect(self, receiver):
        if receiver not in self.receivers:
            self.receivers.append(receiver)
        return receiver

    def disconnect(self, receiver):
        try:
            self.receivers.remove(receiver)
        except ValueError:
            pass

    def send(self, *args):
        for receiver in list(self.receivers):
            try:
                receiver(*args)
            except Exception:
                logger.exception('Receiver of %s signal failed', self.name)

    def __len__(self):
        return len(self.receivers)
