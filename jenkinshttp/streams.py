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
.. module:: jenkinshttp.streams
    :platform: Unix, Windows
    :synopsis: Lazily read response bodies
'''

import logging

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class RequestReleasingStream(object):
    '''Readable byte stream over a streamed ``requests.Response``.

    Returned by :meth:`JenkinsHttpClient.get_file`. The caller owns the
    response: :meth:`close` releases the underlying connection, and
    calling it again is a no-op. Use it as a context manager so the
    connection is released even when the body is not read to the end::

        >>> with client.get_file(build.url + 'consoleText') as stream:
        ...     for chunk in stream:
        ...         sys.stdout.write(chunk.decode('utf-8'))
    '''

    def __init__(self, response, chunk_size=CHUNK_SIZE):
        self._response = response
        self._chunk_size = chunk_size
        self._chunks = None
        self._buffer = b''
        self.closed = False

    @property
    def url(self):
        return self._response.url

    @property
    def headers(self):
        return self._response.headers

    def _iter_chunks(self):
        # iter_content takes care of any content-encoding the server applied
        if self._chunks is None:
            self._chunks = self._response.iter_content(self._chunk_size)
        return self._chunks

    def _next_chunk(self):
        # circular import: the client module imports this one
        from jenkinshttp import _translate_request_errors
        with _translate_request_errors():
            return next(self._iter_chunks(), None)

    def read(self, amt=None):
        '''Read up to ``amt`` bytes, or the rest of the body.

        :param amt: number of bytes to read, ``int`` or ``None``
        :returns: ``bytes``, empty once the body is exhausted or closed
        '''
        if self.closed:
            return b''
        while amt is None or len(self._buffer) < amt:
            chunk = self._next_chunk()
            if chunk is None:
                break
            self._buffer += chunk
        if amt is None:
            data, self._buffer = self._buffer, b''
        else:
            data, self._buffer = self._buffer[:amt], self._buffer[amt:]
        return data

    def __iter__(self):
        if self._buffer:
            pending, self._buffer = self._buffer, b''
            yield pending
        while not self.closed:
            chunk = self._next_chunk()
            if chunk is None:
                return
            yield chunk

    def close(self):
        if self.closed:
            return
        self.closed = True
        logger.debug('releasing connection for %s', self._response.url)
        self._response.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
