import pytest

from onvif_lite import ProtocolError, linerase
from onvif_lite.soap import unwrap, wrap

from conftest import FAULT, RESPONSE


class TestWrap:

    def test_body_verbatim(self):
        body = '<GetHostname xmlns="http://www.onvif.org/ver10/device/wsdl"/>'
        envelope = wrap(body)
        assert body in envelope
        assert envelope.startswith('<s:Envelope xmlns:s="http://www.w3.org/2003/05/soap-envelope"')
        assert '<s:Header></s:Header>' in envelope

    def test_security_in_header(self):
        envelope = wrap('<A/>', '<Security>x</Security>')
        assert '<s:Header><Security>x</Security></s:Header>' in envelope

    def test_round_trip(self):
        envelope = wrap('<GetResponse xmlns="http://example.com"><Value>5</Value></GetResponse>')
        body, xml = unwrap(envelope)
        assert linerase(body) == {'getResponse': {'value': 5.0}}
        assert 'xmlns' not in xml


class TestUnwrap:

    def test_response(self):
        body, _ = unwrap(RESPONSE % '<tds:GetHostnameResponse><tds:HostnameInformation>'
                                    '<tt:FromDHCP>false</tt:FromDHCP><tt:Name>cam</tt:Name>'
                                    '</tds:HostnameInformation></tds:GetHostnameResponse>')
        assert linerase(body) == {
            'getHostnameResponse': {'hostnameInformation': {'fromDHCP': False, 'name': 'cam'}},
        }

    def test_fault_reason(self):
        raw = RESPONSE % (FAULT % 'Sender not Authorized')
        with pytest.raises(ProtocolError) as info:
            unwrap(raw)
        assert str(info.value) == 'ONVIF SOAP Fault: Sender not Authorized'
        assert info.value.xml == raw

    def test_fault_without_reason_uses_code(self):
        raw = RESPONSE % (
            '<SOAP-ENV:Fault><SOAP-ENV:Code><SOAP-ENV:Value>SOAP-ENV:Sender</SOAP-ENV:Value>'
            '<SOAP-ENV:Subcode><SOAP-ENV:Value>ter:InvalidArgVal</SOAP-ENV:Value></SOAP-ENV:Subcode>'
            '</SOAP-ENV:Code></SOAP-ENV:Fault>'
        )
        with pytest.raises(ProtocolError) as info:
            unwrap(raw)
        assert str(info.value).startswith('ONVIF SOAP Fault: {')
        assert 'ter:InvalidArgVal' in str(info.value)

    def test_not_xml(self):
        with pytest.raises(ProtocolError) as info:
            unwrap('<html>broken')
        assert str(info.value).startswith('Wrong ONVIF SOAP response')
        assert info.value.xml == '<html>broken'

    def test_not_an_envelope(self):
        with pytest.raises(ProtocolError) as info:
            unwrap('<html><body>Not found</body></html>')
        assert str(info.value) == 'Wrong ONVIF SOAP response, envelope and body are expected'
