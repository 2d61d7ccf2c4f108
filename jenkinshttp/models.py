#!/usr/bin/env python
# Software License Agreement (BSD License)
#
# Copyright (c) 2010, Willow Garage, Inc.
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions
# are met:
#
#  * Redistributions of source code must retain the above copyright
#    notice, this list of conditions and the following disclaimer.
#  * Redistributions in binary form must reproduce the above
#    copyright notice, this list of conditions and the following
#    disclaimer in the documentation and/or other materials provided
#    with the distribution.
#  * Neither the name of Willow Garage, Inc. nor the names of its
#    contributors may be used to endorse or promote products derived
#    from this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS
# 'AS IS' AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT
# LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS
# FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE
# COPYRIGHT OWNER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING,
# BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;
# LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT
# LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN
# ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

'''
.. module:: jenkinshttp.models
    :platform: Unix, Windows
    :synopsis: Payload holders decoded from Jenkins JSON responses
'''

from jenkinshttp import endpoints


class BaseModel(object):
    '''Data holder populated from a JSON object.

    Subclasses list the JSON keys they care about in :attr:`fields`,
    mapping each key to the attribute it is stored under. Keys the server
    sends that are not listed are dropped, so new Jenkins versions and
    plugins adding fields do not break decoding.

    :attr:`client` is the :class:`jenkinshttp.JenkinsHttpClient` that
    fetched the object, set by the client once decoding succeeded.
    '''

    fields = {}

    def __init__(self, **kwargs):
        self.client = None
        for attr in self.fields.values():
            setattr(self, attr, kwargs.get(attr))

    @classmethod
    def from_json(cls, data):
        '''Build an instance from a decoded JSON object.

        :param data: decoded JSON, ``dict``
        :raises: ``ValueError`` when ``data`` is not a JSON object
        '''
        if not isinstance(data, dict):
            raise ValueError('expected a JSON object for %s, got %s'
                             % (cls.__name__, type(data).__name__))
        return cls(**dict((attr, data[key])
                          for key, attr in cls.fields.items()
                          if key in data))

    def to_json(self):
        return dict((key, getattr(self, attr))
                    for key, attr in self.fields.items()
                    if getattr(self, attr) is not None)

    def set_client(self, client):
        self.client = client

    def _require_client(self):
        if self.client is None:
            # circular import: the client module imports the models
            from jenkinshttp import JenkinsException
            raise JenkinsException('%s is not attached to a Jenkins client'
                                   % type(self).__name__)
        return self.client

    def __repr__(self):
        return '%s(%s)' % (type(self).__name__, ', '.join(
            '%s=%r' % (attr, getattr(self, attr))
            for attr in sorted(self.fields.values())))


class Crumb(BaseModel):
    '''Anti-CSRF token returned by ``/crumbIssuer/api/json``.'''

    fields = {
        'crumb': 'crumb',
        'crumbRequestField': 'request_field',
    }

    def as_header(self):
        ''':returns: ``{request_field: crumb}`` or ``{}`` when incomplete'''
        if not self.request_field or self.crumb is None:
            return {}
        return {self.request_field: self.crumb}


class Build(BaseModel):

    fields = {
        'number': 'number',
        'url': 'url',
        'result': 'result',
        'building': 'building',
        'duration': 'duration',
        'timestamp': 'timestamp',
    }

    def get_console_output(self):
        '''Stream the console log of this build.

        :returns: :class:`jenkinshttp.streams.RequestReleasingStream`,
            close it once done
        '''
        client = self._require_client()
        return client.get_file(_child_url(self.url, endpoints.CONSOLE_TEXT))


class Job(BaseModel):

    fields = {
        'name': 'name',
        'fullName': 'full_name',
        'url': 'url',
        'color': 'color',
        'builds': 'builds',
        'lastBuild': 'last_build',
    }

    def get_build(self, number):
        '''Fetch build ``number`` of this job.

        :param number: Build number, ``int``
        :returns: :class:`Build`
        '''
        client = self._require_client()
        return client.get(_child_url(self.url, str(number)), Build)

    def get_config(self):
        ''':returns: job configuration (XML format), ``str``'''
        client = self._require_client()
        url = _child_url(self.url, endpoints.CONFIG_XML)
        with client.get_file(url) as stream:
            return stream.read().decode('utf-8')


def _child_url(url, child):
    if not url.endswith('/'):
        url += '/'
    return url + child
