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

"""Decorators used by the DocumentDB Cluster API."""

from .errors import map_client_error
from ..exceptions import DocDBApiException
from botocore.exceptions import ClientError
from functools import wraps
from inspect import iscoroutinefunction
from loguru import logger
from typing import Any, Callable


def handle_exceptions(description: str) -> Callable:
    """Decorator to translate exceptions raised by AWS client calls.

    Wraps the function in a try-catch block and re-raises any exception as
    the matching DocDBApiException, so that callers above the client layer
    only ever see the API error taxonomy.

    Args:
        description: Short description of the operation, used as the error message

    Returns:
        Decorator function
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any):
            try:
                if iscoroutinefunction(func):
                    return await func(*args, **kwargs)
                return func(*args, **kwargs)
            except DocDBApiException:
                raise
            except ClientError as error:
                error_code = error.response.get('Error', {}).get('Code')
                error_message = error.response.get('Error', {}).get('Message')
                logger.error(f'{description} failed with client error {error_code}: {error_message}')
                raise map_client_error(description, error) from error
            except Exception as error:
                logger.exception(f'{description} failed with unexpected error: {str(error)}')
                raise map_client_error(description, error) from error

        return wrapper

    return decorator
