""" Credentials: WS-Security UsernameToken and HTTP Digest
"""
import hashlib
import logging
import re
import secrets
from datetime import datetime, timezone
from threading import Lock

from lxml import etree
from zeep.wsse.username import UsernameToken

from .definition import SOAP_ENV
from .exceptions import AuthError

logger = logging.getLogger('onvif_lite.auth')

NC_LIMIT = 99999999
CHALLENGE_RE = re.compile(r'([\w-]+)\s*=\s*(?:"((?:[^"\\]|\\.)*)"|([^\s,]*))')


class UsernameDigestTokenDtDiff(UsernameToken):
    """
    UsernameDigestToken class, with a clock that returns the device time;
    This allows authentication on cameras without being time synchronized.
    Every `apply` produces a fresh nonce and a fresh Created timestamp.
    Please note that using NTP on both end is the recommended solution.
    """
    def __init__(self, user, passw, clock=None, **kwargs):
        kwargs.setdefault('use_digest', True)
        kwargs.setdefault('zulu_timestamp', True)
        super().__init__(user, passw, **kwargs)
        self.clock = clock

    def apply(self, envelope, headers):
        oldCreated = self.created
        if self.created is None:
            self.created = self.clock() if self.clock else datetime.now(timezone.utc)
        try:
            return super().apply(envelope, headers)
        finally:
            self.created = oldCreated


def security_header(token):
    """ Serialize the `wsse:Security` element the token produces
    """
    envelope = etree.Element(etree.QName(SOAP_ENV, 'Envelope'), nsmap={'s': SOAP_ENV})
    token.apply(envelope, {})
    header = envelope.find(etree.QName(SOAP_ENV, 'Header'))
    for security in header:
        security.set(etree.QName(SOAP_ENV, 'mustUnderstand'), '1')
    return ''.join(etree.tostring(element, encoding='unicode') for element in header)


def parse_challenge(header):
    """ Parse a `WWW-Authenticate: Digest ...` value into a dict.
    Commas inside quoted values (qop="auth,auth-int") are kept.
    """
    scheme, _, params = header.strip().partition(' ')
    if scheme.lower() != 'digest':
        raise AuthError('Unsupported authentication scheme: %s' % scheme)
    challenge = {}
    for match in CHALLENGE_RE.finditer(params):
        key, quoted, plain = match.groups()
        challenge[key.lower()] = quoted if quoted is not None else plain
    if not challenge.get('realm') or not challenge.get('nonce'):
        raise AuthError('Malformed digest challenge: %s' % header)
    return challenge


def md5(value):
    return hashlib.md5(value.encode('utf-8')).hexdigest()


class HTTPDigest:
    """
    HTTP Digest (RFC 2617) response generator. One instance per device:
    the request counter `nc` is shared by every challenge it answers.
    """
    def __init__(self):
        self.nc = 0
        self.lock = Lock()

    def next_nc(self):
        with self.lock:
            self.nc = 1 if self.nc >= NC_LIMIT else self.nc + 1
            return '%08d' % self.nc

    def authorization(self, username, password, method, uri, header, cnonce=None):
        """ Build the `Authorization` header value answering `header` """
        challenge = parse_challenge(header)
        realm, nonce = challenge['realm'], challenge['nonce']
        ha1 = md5('%s:%s:%s' % (username, realm, password))
        ha2 = md5('%s:%s' % (method, uri))
        params = [
            ('username', '"%s"' % username),
            ('realm', '"%s"' % realm),
            ('nonce', '"%s"' % nonce),
            ('uri', '"%s"' % uri),
        ]
        qop = challenge.get('qop')
        if qop is not None:
            qop = 'auth'
            nc = self.next_nc()
            cnonce = cnonce or secrets.token_hex(4)
            response = md5(':'.join((ha1, nonce, nc, cnonce, qop, ha2)))
            params += [('qop', qop), ('nc', nc), ('cnonce', '"%s"' % cnonce)]
        else:
            response = md5(':'.join((ha1, nonce, ha2)))
        params.append(('response', '"%s"' % response))
        if 'opaque' in challenge:
            params.append(('opaque', '"%s"' % challenge['opaque']))
        if 'algorithm' in challenge:
            params.append(('algorithm', challenge['algorithm']))
        logger.debug('Answering digest challenge for realm %s', realm)
        return 'Digest ' + ', '.join('%s=%s' % param for param in params)
