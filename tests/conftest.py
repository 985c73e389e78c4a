"""Shared fakes for scanner tests."""
import json

import pytest
from botocore.exceptions import ClientError

from well_architected_scanner.core.framework import (
    CheckDefinition,
    CheckStatus,
    Pillar,
    Severity,
)


def client_error(code="ThrottlingException", status=400, message="Rate exceeded"):
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        "SelectResourceConfig",
    )


class FakeConfigClient:
    """Stands in for a boto3 Config client.

    ``responses`` is consumed in order; an exception instance is raised,
    anything else is returned as the page.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def select_resource_config(self, **params):
        self.calls.append(params)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeProvider:
    def __init__(self, client):
        self.client = client
        self.requested = []

    def get_client(self, service_name, account_id=None, region=None):
        self.requested.append((service_name, account_id))
        return self.client


class FakeQuery:
    """Query client returning canned rows keyed by resource type."""

    def __init__(self, rows_by_type):
        self.rows_by_type = rows_by_type
        self.queries = []

    def execute(self, query, scope, use_cache=True):
        self.queries.append((query, scope))
        for resource_type, rows in self.rows_by_type.items():
            if f"'{resource_type}'" in query:
                return rows
        return []


def page(rows, token=None):
    response = {"Results": [json.dumps(row) for row in rows]}
    if token:
        response["NextToken"] = token
    return response


def make_definition(check_id="RE01", pillar=Pillar.RELIABILITY, status=CheckStatus.PASS,
                    logic=None, severity=Severity.MEDIUM, title=None):
    holder = {}

    def default_logic(scope):
        return holder["definition"].create_result(status, f"{check_id} on {scope}")

    definition = CheckDefinition(
        id=check_id,
        pillar=pillar,
        title=title or f"Check {check_id}",
        logic=logic or default_logic,
        severity=severity,
    )
    holder["definition"] = definition
    return definition


@pytest.fixture
def definition_factory():
    return make_definition
