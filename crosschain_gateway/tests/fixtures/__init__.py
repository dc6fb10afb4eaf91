from crosschain_gateway.tests.fixtures.aiohttp_session import *  # noqa: F401, F403
from crosschain_gateway.tests.fixtures.clients import *  # noqa: F401, F403
from crosschain_gateway.tests.fixtures.fake_clock import *  # noqa: F401, F403
from crosschain_gateway.tests.fixtures.reference_data import *  # noqa: F401, F403
