""" Event service (ver10), pull point subscriptions only
"""
import logging

from .ptz import duration, seconds
from .service import ONVIFService, text
from .utils import linerase, safeFunc

logger = logging.getLogger('onvif_lite.events')

WSN = 'http://docs.oasis-open.org/wsn/b-2'


class Events(ONVIFService):
    """
    Pull point event subscription:

    >>> await camera.events.create_pull_point_subscription(initial_termination_time=60)
    >>> messages = await camera.events.pull_messages(timeout=5)
    >>> await camera.events.unsubscribe()
    """
    service = 'events'

    def __init__(self, camera):
        super().__init__(camera)
        self.properties = None
        self.subscription = None

    @safeFunc
    async def get_event_properties(self):
        data = await self.call('GetEventProperties')
        self.properties = linerase(data, array=('topicNamespaceLocation', 'topicExpressionDialect',
                                                'messageContentFilterDialect'))['getEventPropertiesResponse']
        return self.properties

    @safeFunc
    async def get_service_capabilities(self):
        data = await self.call('GetServiceCapabilities')
        return linerase(data)['getServiceCapabilitiesResponse']['capabilities']

    @safeFunc
    async def create_pull_point_subscription(self, initial_termination_time=None):
        """ Subscribe and register the subscription address as `pullPoint`
        in the camera service address table
        """
        content = ''
        if initial_termination_time is not None:
            content = text('InitialTerminationTime', duration(initial_termination_time))
        data = await self.call('CreatePullPointSubscription', content)
        self.subscription = linerase(data)['createPullPointSubscriptionResponse']
        address = self.subscription['subscriptionReference']['address']
        self.camera.uri['pullPoint'] = self.camera.parse_url(address)
        logger.debug('Pull point subscription at %s', address)
        return self.subscription

    @safeFunc
    async def pull_messages(self, timeout=10, message_limit=10):
        """
        :param timeout: seconds or xs:duration the device may wait for messages
        :return: dict with `currentTime`, `terminationTime` and the list
          of `notificationMessage`
        """
        body = self.body('PullMessages', text('Timeout', duration(timeout))
                         + text('MessageLimit', message_limit))
        # the device holds the answer up to `timeout`
        data, _ = await self.request(body, service='pullPoint',
                                     timeout=self.camera.timeout + seconds(timeout))
        response = linerase(data, array=('notificationMessage',))['pullMessagesResponse']
        if isinstance(response, dict):
            response.setdefault('notificationMessage', [])
        return response

    @safeFunc
    async def unsubscribe(self):
        await self.request(self.body('Unsubscribe', ns=WSN), service='pullPoint')
        self.camera.uri.pop('pullPoint', None)
        self.subscription = None
