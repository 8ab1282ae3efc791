import pytest

from distribution_server.models import DistributionRecord, User


def make_record(center="CRTS TREICHVILLE", structure="CHU TREICHVILLE", product="CGR ADULTE",
                group="O+", quantity=1, date="2025-03-05"):
    return DistributionRecord(
        horodateur="05/03/2025 10:12:00",
        nomAgent="KOUASSI A.",
        dateDistribution=date,
        centreCntsci=center,
        nomStructuresSanitaire=structure,
        typeProduit=product,
        saGroupe=group,
        nbPoches=quantity,
    )


@pytest.fixture
def example_records():
    """Three-record scenario: A/X adult 10, A/X plasma 5, B/Y adult 3."""
    return [
        make_record(center="A", structure="X", product="CGR ADULTE", group="O+", quantity=10),
        make_record(center="A", structure="X", product="PLASMA", group="O+", quantity=5),
        make_record(center="B", structure="Y", product="CGR ADULTE", group="A-", quantity=3),
    ]


@pytest.fixture
def network_records():
    return [
        make_record(center="CRTS TREICHVILLE", structure="CHU TREICHVILLE", product="CGR ADULTE",
                    group="O+", quantity=12, date="2025-03-05T10:00:00"),
        make_record(center="CRTS TREICHVILLE", structure="PMI ADJAME", product="CGR PEDIATRIQUE",
                    group="A+", quantity=4, date="06/03/2025"),
        make_record(center="CRTS TREICHVILLE", structure="CHU TREICHVILLE", product="PLAQUETTES",
                    group="O-", quantity=2, date="2025-02-14"),
        make_record(center="CRTS BOUAKE", structure="CHU BOUAKE", product="PLASMA FRAIS CONGELE",
                    group="B+", quantity=7, date="2025-03-05"),
        make_record(center="CRTS BOUAKE", structure="HG BEOUMI", product="CGR ADULTE",
                    group="O+", quantity=9, date="10/01/2024"),
        make_record(center="CDTS DIVO", structure="HG DIVO", product="CGR NOURRISSON",
                    group="AB+", quantity=1, date="pas de date"),
    ]


@pytest.fixture
def standard_agent():
    return User(nomAgent="KOUASSI A.", login="kouassi", motDePasse="s3cret",
                centreAffectation="CRTS TREICHVILLE")


@pytest.fixture
def supervisor_agent():
    return User(nomAgent="SUPERVISEUR", login="superviseur", motDePasse="national",
                centreAffectation="TOUS LES CENTRES CNTSCI")


@pytest.fixture
def headquarters_agent():
    return User(nomAgent="DG", login="dg", motDePasse="direction",
                centreAffectation="DIRECTION GENERALE")
