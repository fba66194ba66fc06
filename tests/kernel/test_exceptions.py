# Copyright 2026 Firefly Software Solutions Inc.
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
"""Tests for the flyware exception hierarchy."""

from flyware.kernel.exceptions import (
    CacheException,
    ConfigurationException,
    FlywareException,
    ForbiddenException,
    InfrastructureException,
    SecurityException,
    SessionException,
    UnauthorizedException,
)


class TestFlywareException:
    def test_basic_creation(self):
        exc = FlywareException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_code_and_context(self):
        exc = FlywareException("bad origin", code="CORS_INVALID_ORIGIN", context={"origin": "google.com"})
        assert exc.code == "CORS_INVALID_ORIGIN"
        assert exc.context["origin"] == "google.com"

    def test_context_defaults_to_empty_dict(self):
        exc = FlywareException("test")
        exc.context["key"] = "value"
        # Not shared between instances
        assert FlywareException("test2").context == {}


class TestExceptionHierarchy:
    def test_configuration_is_flyware(self):
        assert issubclass(ConfigurationException, FlywareException)

    def test_security_family(self):
        assert issubclass(SecurityException, FlywareException)
        assert issubclass(UnauthorizedException, SecurityException)
        assert issubclass(ForbiddenException, SecurityException)

    def test_infrastructure_family(self):
        assert issubclass(InfrastructureException, FlywareException)
        assert issubclass(CacheException, InfrastructureException)
        assert issubclass(SessionException, InfrastructureException)
