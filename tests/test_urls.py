import unittest

import jenkinshttp
from tests.base import JenkinsHttpTestBase


class UrlJoinTest(unittest.TestCase):

    def test_single_separator(self):
        for left in ('/jenkins', '/jenkins/', '/jenkins//'):
            for right in ('job/x', '/job/x', '//job/x'):
                self.assertEqual(jenkinshttp.url_join(left, right),
                                 '/jenkins/job/x', (left, right))

    def test_empty_parts(self):
        self.assertEqual(jenkinshttp.url_join('', 'api/json'), '/api/json')
        self.assertEqual(jenkinshttp.url_join('/', '/'), '/')


class ResolveApiUrlTest(JenkinsHttpTestBase):

    paths = ['job/x', '/job/x', 'job/x/', 'job/a%20folder/job/x',
             'computer/(master)']

    def test_relative(self):
        self.assertEqual(self.j.resolve_api_url('job/myjob'),
                         self.make_url('job/myjob/api/json'))
        for path in self.paths:
            url = self.j.resolve_api_url(path)
            self.assertTrue(url.startswith(self.make_url('')), url)
            self.assertTrue(
                url.endswith(path.strip('/') + '/api/json'), url)

    def test_root(self):
        self.assertEqual(self.j.resolve_api_url(''),
                         self.make_url('api/json'))
        self.assertEqual(self.j.resolve_api_url('/'),
                         self.make_url('api/json'))

    def test_with_query(self):
        self.assertEqual(self.j.resolve_api_url('job/myjob?depth=1'),
                         self.make_url('job/myjob/api/json?depth=1'))
        for path in self.paths:
            for query in ('depth=1', 'tree=jobs[name,url]', 'a=1&b=?'):
                self.assertEqual(
                    self.j.resolve_api_url(path + '?' + query),
                    self.j.resolve_api_url(path) + '?' + query)

    def test_absolute(self):
        for url in ('http://other.example.org/job/x',
                    'https://other.example.org:8443/ci/job/x/'):
            self.assertEqual(self.j.resolve_api_url(url),
                             url.rstrip('/') + '/api/json')
        self.assertEqual(
            self.j.resolve_api_url('http://other.example.org/job/x?depth=2'),
            'http://other.example.org/job/x/api/json?depth=2')
        self.assertEqual(
            self.j.resolve_api_url('HTTPS://other.example.org/job/x'),
            'HTTPS://other.example.org/job/x/api/json')

    def test_crumb_issuer(self):
        self.assertEqual(
            self.j.resolve_api_url(jenkinshttp.endpoints.CRUMB_URL),
            self.make_url('crumbIssuer/api/json'))


class ResolveApiUrlRootContextTest(ResolveApiUrlTest):

    base_url = 'http://example.com'
