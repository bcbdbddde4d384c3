import httpx
import pytest
from zeep.transports import AsyncTransport

from onvif_lite import ONVIFCamera

RESPONSE = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<SOAP-ENV:Envelope xmlns:SOAP-ENV="http://www.w3.org/2003/05/soap-envelope"'
    ' xmlns:tt="http://www.onvif.org/ver10/schema"'
    ' xmlns:tds="http://www.onvif.org/ver10/device/wsdl"'
    ' xmlns:trt="http://www.onvif.org/ver10/media/wsdl"'
    ' xmlns:tr2="http://www.onvif.org/ver20/media/wsdl"'
    ' xmlns:tptz="http://www.onvif.org/ver20/ptz/wsdl"'
    ' xmlns:timg="http://www.onvif.org/ver20/imaging/wsdl"'
    ' xmlns:tev="http://www.onvif.org/ver10/events/wsdl"'
    ' xmlns:wsnt="http://docs.oasis-open.org/wsn/b-2"'
    ' xmlns:wsa5="http://www.w3.org/2005/08/addressing">'
    '<SOAP-ENV:Header/>'
    '<SOAP-ENV:Body>%s</SOAP-ENV:Body>'
    '</SOAP-ENV:Envelope>'
)

FAULT = (
    '<SOAP-ENV:Fault>'
    '<SOAP-ENV:Code><SOAP-ENV:Value>SOAP-ENV:Sender</SOAP-ENV:Value>'
    '<SOAP-ENV:Subcode><SOAP-ENV:Value>ter:NotAuthorized</SOAP-ENV:Value></SOAP-ENV:Subcode>'
    '</SOAP-ENV:Code>'
    '<SOAP-ENV:Reason><SOAP-ENV:Text xml:lang="en">%s</SOAP-ENV:Text></SOAP-ENV:Reason>'
    '</SOAP-ENV:Fault>'
)

TIME = (
    '<tds:GetSystemDateAndTimeResponse><tds:SystemDateAndTime>'
    '<tt:DateTimeType>NTP</tt:DateTimeType>'
    '<tt:DaylightSavings>false</tt:DaylightSavings>'
    '<tt:UTCDateTime>'
    '<tt:Time><tt:Hour>%d</tt:Hour><tt:Minute>20</tt:Minute><tt:Second>30</tt:Second></tt:Time>'
    '<tt:Date><tt:Year>2020</tt:Year><tt:Month>5</tt:Month><tt:Day>6</tt:Day></tt:Date>'
    '</tt:UTCDateTime>'
    '</tds:SystemDateAndTime></tds:GetSystemDateAndTimeResponse>'
)


def soap_response(body, status_code=200, headers=None):
    return httpx.Response(status_code, text=RESPONSE % body, headers=headers)


@pytest.fixture
def soap():
    """ Build an httpx response holding a SOAP envelope around `body` """
    return soap_response


@pytest.fixture
def fault():
    return lambda reason='Sender not Authorized': FAULT % reason


@pytest.fixture
def time_body():
    return lambda hour=10: TIME % hour


@pytest.fixture
def make_camera():
    """ Camera talking to an `httpx.MockTransport` handler """
    cameras = []

    def factory(handler, username='admin', password='secret', **kwargs):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = AsyncTransport(client=client, wsdl_client=httpx.Client())
        camera = ONVIFCamera('192.168.0.10', 80, username, password, transport=transport, **kwargs)
        cameras.append(camera)
        return camera

    yield factory
    for camera in cameras:
        camera.transport.wsdl_client.close()
