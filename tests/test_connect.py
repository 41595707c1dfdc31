"""
Tests for the OAuth connect flow — init data, callback correlation, endpoints.
"""

import pytest

from connectors.github import GitHubConnector
from connectors.models import ExternalCredential
from connectors.registry import ConnectorRegistry
from core.errors import CorrelationExpiredOrMissing, PersistenceFailed, ProviderExchangeFailed
from core.models import Site, User
from core.request_context import RequestContext
from database.models import TransientRecord
from endpoints.base import EndpointRequest, HttpVerb, IncomingRequest, SecurityLevel, dispatch
from endpoints.connect import connect_callback, connect_init

MISSING = {"error": "An matching request was not found; please try again."}


def _callback_request(endpoint, slug="fake", **params) -> IncomingRequest:
    return IncomingRequest(
        verb=HttpVerb.GET,
        route_params=endpoint.match(f"connect/callback/{slug}"),
        params=params,
    )


class TestInitializationData:
    def test_stores_correlating_info_under_state(self, fake_connector, environment):
        data = fake_connector.get_initialization_data({"user_id": "u1"})

        state = data["state"]
        assert state and data["provider"] == "fake"
        assert data["authorizationUrl"].endswith(f"state={state}")
        assert environment.get_transient_value(state) == {
            "user_id": "u1",
            "token": state,
            "connector": "fake",
        }

    def test_state_tokens_are_unique(self, fake_connector):
        states = {fake_connector.get_initialization_data()["state"] for _ in range(20)}
        assert len(states) == 20

    def test_redirect_uri_uses_base_rest_url(self, fake_connector):
        assert fake_connector.redirect_uri() == "https://blog.example/api/v1/connect/callback/fake"


class TestHandleCallback:
    def test_happy_path_returns_credential(self, fake_connector, environment):
        state = fake_connector.get_initialization_data({"user_id": "u1"})["state"]

        credential = fake_connector.handle_callback(
            EndpointRequest(params={"slug": "fake", "state": state, "code": "C"})
        )

        assert credential.model_id
        assert credential.user_id == "u1"
        assert credential.access_token() == "token-C"
        assert fake_connector.exchanged == [("C", {"user_id": "u1", "token": state, "connector": "fake"})]

    def test_unknown_state_raises(self, fake_connector):
        with pytest.raises(CorrelationExpiredOrMissing):
            fake_connector.handle_callback(
                EndpointRequest(params={"slug": "fake", "state": "unknown", "code": "C"})
            )
        assert fake_connector.exchanged == []

    def test_state_is_single_use(self, fake_connector, environment):
        state = fake_connector.get_initialization_data()["state"]
        request = EndpointRequest(params={"slug": "fake", "state": state, "code": "C"})
        fake_connector.handle_callback(request)

        assert environment.get_transient_value(state) is None
        with pytest.raises(CorrelationExpiredOrMissing):
            fake_connector.handle_callback(request)

    def test_expired_state_raises(self, fake_connector, clock):
        state = fake_connector.get_initialization_data()["state"]
        clock.advance(fake_connector.state_ttl_seconds + 1)

        with pytest.raises(CorrelationExpiredOrMissing):
            fake_connector.handle_callback(
                EndpointRequest(params={"slug": "fake", "state": state, "code": "C"})
            )

    def test_state_only_redeems_at_its_own_connector(self, fake_connector, environment):
        state = fake_connector.get_initialization_data({"user_id": "u1"})["state"]
        other = GitHubConnector(environment, client_id="cid", client_secret="secret")

        with pytest.raises(CorrelationExpiredOrMissing):
            other.handle_callback(
                EndpointRequest(params={"slug": "github", "state": state, "code": "C"})
            )

        assert environment.get_transient_value(state) is not None
        credential = fake_connector.handle_callback(
            EndpointRequest(params={"slug": "fake", "state": state, "code": "C"})
        )
        assert credential.user_id == "u1"

    def test_relinking_same_account_reuses_credential(self, fake_connector, environment):
        ids = []
        for code in ("C1", "C2"):
            state = fake_connector.get_initialization_data({"user_id": "u1"})["state"]
            ids.append(
                fake_connector.handle_callback(
                    EndpointRequest(params={"slug": "fake", "state": state, "code": code})
                ).model_id
            )

        assert ids[0] == ids[1]
        stored = environment.get_helper_for_model(ExternalCredential).find_all(ExternalCredential)
        assert len(stored) == 1
        assert stored[0].access_token() == "token-C2"


class TestConnectCallbackEndpoint:
    def setup_method(self):
        self.endpoint = connect_callback()

    def test_declaration(self):
        assert self.endpoint.route == "connect/callback/[slug]"
        assert self.endpoint.verbs == (HttpVerb.GET,)
        assert self.endpoint.security == SecurityLevel.ANONYMOUS
        assert [p.name for p in self.endpoint.parameters] == ["slug", "state", "code"]
        assert all(p.is_required for p in self.endpoint.parameters)

    def test_success_returns_credential_id(self, fake_connector):
        state = fake_connector.get_initialization_data({"user_id": "u1"})["state"]

        response = dispatch(self.endpoint, _callback_request(self.endpoint, state=state, code="C"))

        assert response.status_code == 200
        assert response.body["credentialId"]

    def test_unknown_state_returns_400_with_message(self, fake_connector):
        response = dispatch(self.endpoint, _callback_request(self.endpoint, state="unknown", code="C"))

        assert response.status_code == 400
        assert response.body == MISSING

    def test_state_from_another_connector_returns_400(self, fake_connector, environment):
        github = GitHubConnector(environment, client_id="cid", client_secret="secret")
        ConnectorRegistry().register(github)
        state = fake_connector.get_initialization_data({"user_id": "u1"})["state"]

        response = dispatch(
            self.endpoint, _callback_request(self.endpoint, slug="github", state=state, code="C")
        )

        assert response.status_code == 400
        assert response.body == MISSING
        assert fake_connector.exchanged == []

    def test_expired_state_returns_400(self, fake_connector, clock):
        state = fake_connector.get_initialization_data()["state"]
        clock.advance(3600)

        response = dispatch(self.endpoint, _callback_request(self.endpoint, state=state, code="C"))
        assert response.status_code == 400
        assert response.body == MISSING

    def test_missing_code_is_rejected_before_lookup(self, fake_connector):
        state = fake_connector.get_initialization_data()["state"]

        response = dispatch(self.endpoint, _callback_request(self.endpoint, state=state))

        assert response.status_code == 400
        assert "code" in response.body["fields"]
        assert fake_connector.exchanged == []

    def test_unknown_connector_slug_is_rejected(self, fake_connector):
        response = dispatch(
            self.endpoint, _callback_request(self.endpoint, slug="myspace", state="s", code="C")
        )
        assert response.status_code == 400
        assert "slug" in response.body["fields"]

    def test_provider_failure_returns_502(self, fake_connector):
        fake_connector.fail_with = ProviderExchangeFailed("fake", "boom")
        state = fake_connector.get_initialization_data()["state"]

        response = dispatch(self.endpoint, _callback_request(self.endpoint, state=state, code="C"))

        assert response.status_code == 502
        assert response.body == {"error": "The provider could not complete the connection."}

    def test_persistence_failure_returns_500(self, fake_connector):
        fake_connector.fail_with = PersistenceFailed("disk full")
        state = fake_connector.get_initialization_data()["state"]

        response = dispatch(self.endpoint, _callback_request(self.endpoint, state=state, code="C"))
        assert response.status_code == 500

    def test_transient_store_failure_returns_500(self, fake_connector, session_factory):
        state = fake_connector.get_initialization_data()["state"]
        TransientRecord.__table__.drop(session_factory.kw["bind"])

        response = dispatch(self.endpoint, _callback_request(self.endpoint, state=state, code="C"))

        assert response.status_code == 500
        assert response.body == {"error": "The connection could not be saved."}
        assert fake_connector.exchanged == []


class TestConnectInitEndpoint:
    def setup_method(self):
        self.endpoint = connect_init()

    def test_requires_authenticated_caller(self, fake_connector):
        request = IncomingRequest(verb=HttpVerb.GET, route_params={"slug": "fake"})
        assert dispatch(self.endpoint, request).status_code == 401

    def test_returns_initialization_data_for_user(self, fake_connector, environment):
        request = IncomingRequest(
            verb=HttpVerb.GET,
            route_params={"slug": "fake"},
            context=RequestContext(user=User(model_id="u1"), site=Site(model_id="s1")),
            security=SecurityLevel.REGISTERED,
        )

        response = dispatch(self.endpoint, request)

        assert response.status_code == 200
        info = environment.get_transient_value(response.body["state"])
        assert info["user_id"] == "u1"
        assert info["site_id"] == "s1"
