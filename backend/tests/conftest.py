"""Pytest configuration and fixtures for the pre check-in backend tests.

This module provides reusable fixtures for testing:
- Environment and cached-service isolation
- Sample guest/trip payloads in the front end's JSON shape
- Deterministic GIES identifiers
- DynamoDB mocking with moto
"""

import os
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set before any precheckin import reads the environment
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-south-1")
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.pop("RESEND_API_KEY", None)


@pytest.fixture(autouse=True)
def reset_cached_services() -> Generator[None, None, None]:
    """Clear cached settings and service singletons around every test."""
    from precheckin_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === Sample Data Fixtures ===


@pytest.fixture
def italian_guest() -> dict[str, Any]:
    """Italian head of family with a full identity document."""
    return {
        "cognome": "Rossi",
        "nome": "Mario",
        "sesso": "1",
        "dataNascita": "1990-05-20",
        "comuneNascita": "405027042",
        "provinciaNascita": "ve",
        "cittadinanza": "100000100",
        "tipoDocumento": "ID",
        "numeroDocumento": "ca12345ab",
        "luogoRilascio": "405027042",
        "comuneNascitaNome": "Venezia",
        "cittadinanzaNome": "Italia",
        "luogoRilascioNome": "Venezia",
    }


@pytest.fixture
def family_member() -> dict[str, Any]:
    """Second guest of the same family, carrying a document that must be dropped."""
    return {
        "cognome": "Rossi",
        "nome": "Giulia",
        "sesso": "2",
        "dataNascita": "1992-11-03",
        "comuneNascita": "405027042",
        "provinciaNascita": "VE",
        "cittadinanza": "100000100",
        "tipoDocumento": "PASS",
        "numeroDocumento": "YA0000001",
    }


@pytest.fixture
def foreign_guest() -> dict[str, Any]:
    """German citizen (non-Italian) travelling alone."""
    return {
        "cognome": "Müller",
        "nome": "Anna",
        "sesso": "2",
        "dataNascita": "1985-02-14",
        "comuneNascita": "should-be-dropped",
        "provinciaNascita": "XX",
        "statoNascita": "999999999",
        "cittadinanza": "100000216",
        "tipoDocumento": "PASS",
        "numeroDocumento": "C01X00T47",
        "cittadinanzaNome": "Germania",
    }


@pytest.fixture
def submission_payload(italian_guest: dict[str, Any], family_member: dict[str, Any]) -> dict[str, Any]:
    """Valid request body for two guests."""
    return {
        "appartamento": "Ca' Foscari Loft",
        "dataArrivo": "2024-07-01",
        "dataPartenza": "2024-07-05",
        "numeroNotti": 4,
        "emailOspite": "mario.rossi@example.com",
        "guests": [italian_guest, family_member],
    }


@pytest.fixture
def fixed_ids():
    """GIES id factory returning predictable identifiers."""
    from precheckin.services.gies import GiesIds

    def factory(count: int) -> GiesIds:
        return GiesIds(
            movement_id="MOV000000001",
            guest_ids=[f"MOV000000001{position:02d}" for position in range(1, count + 1)],
        )

    return factory


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-south-1"


@pytest.fixture
def dynamodb_resource(aws_credentials: None) -> Generator[Any, None, None]:
    """Mocked DynamoDB resource with the rate-limit table created."""
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="eu-south-1")
        resource.create_table(
            TableName="test-rate-limits",
            KeySchema=[{"AttributeName": "client_key", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "client_key", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield resource
