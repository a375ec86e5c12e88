# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Custom exceptions for the DocumentDB Cluster API."""

from typing import Optional


class DocDBApiException(Exception):
    """Base exception for the DocumentDB Cluster API.

    Every subclass carries the error kind rendered to callers and the HTTP
    status code the request handlers answer with.
    """

    kind = 'InternalError'
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        """Initialize the exception.

        Args:
            message: Human readable description of what failed
            cause: The underlying exception, if any
        """
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        """Render the message along with the underlying cause."""
        if self.cause is not None:
            return f'{self.message}: {self.cause}'
        return self.message


class BadRequestError(DocDBApiException):
    """Malformed or missing input."""

    kind = 'BadRequest'
    status_code = 400


class ForbiddenError(DocDBApiException):
    """Credentials could not be obtained for the target account."""

    kind = 'Forbidden'
    status_code = 403


class NotFoundError(DocDBApiException):
    """Resource is absent, or belongs to another org."""

    kind = 'NotFound'
    status_code = 404


class ConflictError(DocDBApiException):
    """Resource already exists or is in use."""

    kind = 'Conflict'
    status_code = 409


class LimitExceededError(DocDBApiException):
    """Upstream quota reached."""

    kind = 'LimitExceeded'
    status_code = 429


class InternalError(DocDBApiException):
    """Unexpected upstream fault or broken invariant."""

    kind = 'InternalError'
    status_code = 500


class ServiceUnavailableError(DocDBApiException):
    """Upstream is temporarily unreachable."""

    kind = 'ServiceUnavailable'
    status_code = 503
