""" definition file
"""
from collections import namedtuple

NS = 'http://www.onvif.org/'
SI = namedtuple('ServiceInfo', ('ns', 'prefix'))

# Keys are the names used in the service address table (`ONVIFCamera.uri`)
SERVICES = {
    'device'          : SI(NS+'ver10/device/wsdl',          'tds'),
    'media'           : SI(NS+'ver10/media/wsdl',           'trt'),
    'media2'          : SI(NS+'ver20/media/wsdl',           'tr2'),
    'PTZ'             : SI(NS+'ver20/ptz/wsdl',             'tptz'),
    'imaging'         : SI(NS+'ver20/imaging/wsdl',         'timg'),
    'deviceIO'        : SI(NS+'ver10/deviceIO/wsdl',        'tmd'),
    'events'          : SI(NS+'ver10/events/wsdl',          'tev'),
    'analytics'       : SI(NS+'ver20/analytics/wsdl',       'tan'),
    'analyticsDevice' : SI(NS+'ver10/analyticsdevice/wsdl', 'tad'),
    'display'         : SI(NS+'ver10/display/wsdl',         'tls'),
    'recording'       : SI(NS+'ver10/recording/wsdl',       'trc'),
    'search'          : SI(NS+'ver10/search/wsdl',          'tse'),
    'replay'          : SI(NS+'ver10/replay/wsdl',          'trp'),
    'receiver'        : SI(NS+'ver10/receiver/wsdl',        'trv'),
}

SCHEMA_NS = NS + 'ver10/schema'

SOAP_ENV = 'http://www.w3.org/2003/05/soap-envelope'
WSA = 'http://www.w3.org/2005/08/addressing'
XSI = 'http://www.w3.org/2001/XMLSchema-instance'
XSD = 'http://www.w3.org/2001/XMLSchema'

# WS-Discovery (2005/04 draft, the one ONVIF devices answer to)
WSD = 'http://schemas.xmlsoap.org/ws/2005/04/discovery'
WSD_WSA = 'http://schemas.xmlsoap.org/ws/2004/08/addressing'
NVT_NS = NS + 'ver10/network/wsdl'
MULTICAST_GROUP = '239.255.255.250'
MULTICAST_PORT = 3702

SCOPE_NAME = 'onvif://www.onvif.org/name/'
SCOPE_HARDWARE = 'onvif://www.onvif.org/hardware/'
