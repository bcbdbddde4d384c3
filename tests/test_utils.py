from datetime import datetime, timezone

import pytest

from onvif_lite import ONVIFError, linerase
from onvif_lite.utils import Signal, as_list, camel_name, parse_xml, safeFunc, xml_value


class TestLinerase:

    @pytest.mark.parametrize('value, expected', [
        ('34.23', 34.23),
        ('0.34', 0.34),
        ('-0.34', -0.34),
        ('-12', -12.0),
        ('0', 0.0),
        ('-5', -5.0),
        ('12', 12.0),
        ('1.', 1.0),
        ('012', '012'),
        ('000', '000'),
        ('00.34', '00.34'),
        ('034.23', '034.23'),
        ('1e5', '1e5'),
        ('true', True),
        ('false', False),
        ('True', 'True'),
        ('text', 'text'),
        ('', ''),
    ])
    def test_scalars(self, value, expected):
        result = linerase(value)
        assert result == expected
        assert type(result) is type(expected)

    def test_date(self):
        assert linerase('2023-01-02T03:04:05Z') == datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_date_with_fraction(self):
        result = linerase('2023-01-02T03:04:05.25Z')
        assert result == datetime(2023, 1, 2, 3, 4, 5, 250000, tzinfo=timezone.utc)
        assert result.tzinfo is timezone.utc

    def test_date_without_zulu_stays_text(self):
        assert linerase('2023-01-02T03:04:05') == '2023-01-02T03:04:05'

    def test_single_item_collapses(self):
        assert linerase({'a': ['x']}) == {'a': 'x'}

    def test_declared_array_stays_list(self):
        assert linerase({'a': ['x']}, array=('a',)) == {'a': ['x']}

    def test_several_items_stay_list(self):
        assert linerase({'a': ['1', '2']}) == {'a': [1.0, 2.0]}

    def test_whitespace_members_dropped(self):
        assert linerase({'a': ['  \n', 'x']}) == {'a': 'x'}

    def test_empty_element_kept(self):
        assert linerase({'a': ['']}) == {'a': ''}

    def test_attributes_merged(self):
        tree = {'$': {'token': 'p1', 'fixed': 'true'}, 'name': ['main']}
        assert linerase(tree) == {'token': 'p1', 'fixed': True, 'name': 'main'}

    def test_array_declaration_applies_deep(self):
        tree = {'profiles': [{'configurations': [{'name': ['c']}]}]}
        result = linerase(tree, array=('configurations',))
        assert result == {'profiles': {'configurations': [{'name': 'c'}]}}

    def test_parsed_document(self):
        tree = parse_xml(
            '<tt:Profile xmlns:tt="http://www.onvif.org/ver10/schema" token="main" fixed="true">'
            '<tt:Name>MainStream</tt:Name>'
            '<tt:VideoEncoderConfiguration token="enc">'
            '<tt:Resolution><tt:Width>1920</tt:Width><tt:Height>1080</tt:Height></tt:Resolution>'
            '</tt:VideoEncoderConfiguration>'
            '</tt:Profile>'
        )
        assert linerase(tree) == {
            'profile': {
                'token': 'main',
                'fixed': True,
                'name': 'MainStream',
                'videoEncoderConfiguration': {
                    'token': 'enc',
                    'resolution': {'width': 1920.0, 'height': 1080.0},
                },
            },
        }


class TestParseXml:

    def test_explicit_arrays(self):
        assert parse_xml('<a><b>1</b><b>2</b><c/></a>') == {'a': {'b': ['1', '2'], 'c': ['']}}

    def test_text_with_attributes(self):
        tree = parse_xml('<Root><Text Lang="en">hello</Text></Root>')
        assert tree == {'root': {'text': [{'$': {'lang': 'en'}, '_': 'hello'}]}}

    def test_comments_skipped(self):
        assert parse_xml('<a><!-- note --><b>1</b></a>') == {'a': {'b': ['1']}}

    def test_bytes_with_declaration(self):
        raw = b'<?xml version="1.0" encoding="UTF-8"?><a>x</a>'
        assert parse_xml(raw) == {'a': 'x'}


@pytest.mark.parametrize('tag, expected', [
    ('tt:Name', 'name'),
    ('{http://www.onvif.org/ver10/schema}Name', 'name'),
    ('UTCDateTime', 'UTCDateTime'),
    ('PTZConfiguration', 'PTZConfiguration'),
    ('XAddrs', 'XAddrs'),
    ('OSDs', 'OSDs'),
    ('A', 'A'),
])
def test_camel_name(tag, expected):
    assert camel_name(tag) == expected


def test_as_list():
    assert as_list(None) == []
    assert as_list('') == []
    assert as_list({'a': 1}) == [{'a': 1}]
    assert as_list([1, 2]) == [1, 2]


def test_xml_value():
    assert xml_value(True) == 'true'
    assert xml_value(False) == 'false'
    assert xml_value(2.0) == '2'
    assert xml_value(0.5) == '0.5'
    assert xml_value(7) == '7'


class TestSignal:

    def test_connect_once(self):
        received = []
        signal = Signal('test')
        signal.connect(received.append)
        signal.connect(received.append)
        signal.send('x')
        assert received == ['x']
        assert len(signal) == 1

    def test_disconnect(self):
        received = []
        signal = Signal('test')
        signal.connect(received.append)
        signal.disconnect(received.append)
        signal.disconnect(received.append)
        signal.send('x')
        assert received == []

    def test_failing_receiver_is_logged(self, caplog):
        received = []

        def broken(value):
            raise ValueError(value)

        signal = Signal('test')
        signal.connect(broken)
        signal.connect(received.append)
        signal.send('x')
        assert received == ['x']
        assert 'Receiver of test signal failed' in caplog.text


class TestSafeFunc:

    @pytest.mark.asyncio
    async def test_wraps_unknown_errors(self):
        @safeFunc
        async def broken():
            raise KeyError('token')

        with pytest.raises(ONVIFError) as info:
            await broken()
        assert str(info.value) == "Unknown error: 'token'"
        assert isinstance(info.value.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_keeps_onvif_errors(self):
        error = ONVIFError('boom')

        @safeFunc
        async def broken():
            raise error

        with pytest.raises(ONVIFError) as info:
            await broken()
        assert info.value is error
