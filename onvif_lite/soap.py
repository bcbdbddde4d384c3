""" SOAP envelope codec
"""
import json

from lxml import etree

from .definition import SOAP_ENV, WSA, XSI, XSD
from .exceptions import ProtocolError
from .utils import TEXT_KEY, linerase, parse_xml, strip_xmlns

FAULT_PREFIX = 'ONVIF SOAP Fault: '

ENVELOPE = (
    '<s:Envelope xmlns:s="%s" xmlns:a="%s">'
    '<s:Header>%s</s:Header>'
    '<s:Body xmlns:xsi="%s" xmlns:xsd="%s">%s</s:Body>'
    '</s:Envelope>'
)


def wrap(body, security=None):
    """ Put a body fragment into a SOAP 1.2 envelope.

    :param body: XML fragment, inserted verbatim
    :param security: serialized `wsse:Security` element or None
    """
    return ENVELOPE % (SOAP_ENV, WSA, security or '', XSI, XSD, body)


def _text(node):
    if isinstance(node, dict):
        return node.get(TEXT_KEY, '')
    return node


def _fault_message(fault):
    try:
        reason = _text(fault['reason'][0]['text'][0])
    except (KeyError, IndexError, TypeError):
        reason = ''
    if not reason:
        try:
            reason = json.dumps(linerase(fault['code'][0]), default=str)
        except (KeyError, IndexError, TypeError):
            reason = ''
    try:
        detail = _text(fault['detail'][0]['text'][0])
    except (KeyError, IndexError, TypeError):
        detail = ''
    return '%s%s%s' % (FAULT_PREFIX, reason, detail)


def unwrap(raw):
    """ Parse a SOAP response.

    :return: tuple of the body (explicit-array tree, a one item list) and the
      response text with namespace declarations filtered out
    :raises ProtocolError: not a SOAP envelope, or the body holds a Fault
    """
    try:
        result = parse_xml(raw)
    except etree.XMLSyntaxError as err:
        raise ProtocolError('Wrong ONVIF SOAP response, not a SOAP message: %s' % err,
                            xml=raw) from err
    envelope = result.get('envelope')
    if not isinstance(envelope, dict) or not envelope.get('body'):
        raise ProtocolError('Wrong ONVIF SOAP response, envelope and body are expected',
                            xml=raw)
    body = envelope['body']
    if isinstance(body[0], dict) and 'fault' in body[0]:
        raise ProtocolError(_fault_message(body[0]['fault'][0]), xml=raw)
    return body, strip_xmlns(raw)
