import pytest

from apigen.analyzer import EntityAnalyzer
from apigen.policy import GenerationPolicy

from builders import customer


@pytest.fixture
def analyzer():
    return EntityAnalyzer()


@pytest.fixture
def policy():
    return GenerationPolicy()


@pytest.fixture
def customer_class():
    return customer()


@pytest.fixture
def customer_model(analyzer, customer_class):
    return analyzer.analyze(customer_class)
