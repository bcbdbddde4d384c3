import base64
import hashlib
from datetime import datetime, timezone

import pytest
from lxml import etree

from onvif_lite import AuthError
from onvif_lite.auth import NC_LIMIT, HTTPDigest, UsernameDigestTokenDtDiff, parse_challenge, security_header

WSSE = 'http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd'
WSU = 'http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-utility-1.0.xsd'
CHALLENGE = 'Digest realm="cam", qop="auth,auth-int", nonce="abc", opaque="xyz", algorithm=MD5'


def md5(value):
    return hashlib.md5(value.encode()).hexdigest()


class TestParseChallenge:

    def test_quoted_commas(self):
        challenge = parse_challenge(CHALLENGE)
        assert challenge == {
            'realm': 'cam', 'qop': 'auth,auth-int', 'nonce': 'abc', 'opaque': 'xyz', 'algorithm': 'MD5',
        }

    def test_other_scheme(self):
        with pytest.raises(AuthError):
            parse_challenge('Basic realm="cam"')

    def test_missing_nonce(self):
        with pytest.raises(AuthError) as info:
            parse_challenge('Digest realm="cam"')
        assert 'Malformed digest challenge' in str(info.value)


class TestHTTPDigest:

    def test_qop_response(self):
        digest = HTTPDigest()
        header = digest.authorization('admin', 'secret', 'POST', '/onvif/device_service', CHALLENGE,
                                      cnonce='deadbeef')
        ha1 = md5('admin:cam:secret')
        ha2 = md5('POST:/onvif/device_service')
        response = md5('%s:abc:00000001:deadbeef:auth:%s' % (ha1, ha2))
        assert header == (
            'Digest username="admin", realm="cam", nonce="abc", uri="/onvif/device_service", '
            'qop=auth, nc=00000001, cnonce="deadbeef", response="%s", opaque="xyz", algorithm=MD5'
            % response
        )

    def test_nc_increments(self):
        digest = HTTPDigest()
        digest.authorization('admin', 'secret', 'POST', '/', CHALLENGE)
        header = digest.authorization('admin', 'secret', 'POST', '/', CHALLENGE)
        assert 'nc=00000002' in header
        assert digest.nc == 2

    def test_nc_wraps(self):
        digest = HTTPDigest()
        digest.nc = NC_LIMIT
        assert digest.next_nc() == '00000001'

    def test_random_cnonce(self):
        digest = HTTPDigest()
        header = digest.authorization('admin', 'secret', 'POST', '/', CHALLENGE)
        cnonce = header.split('cnonce="')[1].split('"')[0]
        assert len(cnonce) == 8
        int(cnonce, 16)

    def test_legacy_without_qop(self):
        digest = HTTPDigest()
        header = digest.authorization('admin', 'secret', 'GET', '/snap.jpg', 'Digest realm="cam", nonce="n1"')
        expected = md5('%s:n1:%s' % (md5('admin:cam:secret'), md5('GET:/snap.jpg')))
        assert header.endswith('response="%s"' % expected)
        assert 'qop' not in header
        assert digest.nc == 0


class TestWSSecurity:

    def parse(self, header):
        return etree.fromstring(header)

    def test_password_digest(self):
        created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        token = UsernameDigestTokenDtDiff('admin', 'secret', clock=lambda: created)
        security = self.parse(security_header(token))

        assert security.tag == '{%s}Security' % WSSE
        assert security.get('{http://www.w3.org/2003/05/soap-envelope}mustUnderstand') == '1'
        username_token = security.find('{%s}UsernameToken' % WSSE)
        assert username_token.findtext('{%s}Username' % WSSE) == 'admin'
        created_text = username_token.findtext('{%s}Created' % WSU)
        assert created_text == '2024-01-02T03:04:05Z'
        nonce = base64.b64decode(username_token.findtext('{%s}Nonce' % WSSE))
        assert len(nonce) == 16
        password = username_token.find('{%s}Password' % WSSE)
        assert password.get('Type').endswith('#PasswordDigest')
        expected = base64.b64encode(hashlib.sha1(nonce + created_text.encode() + b'secret').digest())
        assert password.text == expected.decode()

    def test_fresh_nonce_and_time(self):
        moments = iter([datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
                        datetime(2024, 1, 2, 3, 4, 9, tzinfo=timezone.utc)])
        token = UsernameDigestTokenDtDiff('admin', 'secret', clock=lambda: next(moments))
        first = self.parse(security_header(token))
        second = self.parse(security_header(token))
        nonce = './/{%s}Nonce' % WSSE
        created = './/{%s}Created' % WSU
        assert first.findtext(nonce) != second.findtext(nonce)
        assert first.findtext(created) == '2024-01-02T03:04:05Z'
        assert second.findtext(created) == '2024-01-02T03:04:09Z'
        assert token.created is None
