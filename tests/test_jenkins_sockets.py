import unittest

import jenkinshttp
from tests.helper import NullServer


class JenkinsRequestTimeoutTests(unittest.TestCase):

    def setUp(self):
        super(JenkinsRequestTimeoutTests, self).setUp()
        self.server = NullServer(("127.0.0.1", 0))

    def tearDown(self):
        self.server.server_close()
        super(JenkinsRequestTimeoutTests, self).tearDown()

    def test_get_timeout(self):
        j = jenkinshttp.JenkinsHttpClient(
            "http://%s:%s" % self.server.server_address, timeout=0.1)

        # assert our request times out when no response
        with self.assertRaises(jenkinshttp.TimeoutException):
            j.get('job/TestJob')

    def test_get_quietly_timeout(self):
        j = jenkinshttp.JenkinsHttpClient(
            "http://%s:%s" % self.server.server_address, timeout=0.1)

        self.assertIsNone(j.get_quietly('crumbIssuer',
                                        jenkinshttp.models.Crumb))
