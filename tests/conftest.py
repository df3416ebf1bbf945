import pytest

from copysmith.engine import PipelineEngine
from copysmith.services import CriticService, DraftValidator, PhaseExecutor
from copysmith.services.text_stats import load_nlp

from fakes import FakeLLM, RecordingStore, make_task_spec


@pytest.fixture(scope="session")
def nlp():
    return load_nlp()


@pytest.fixture
def task_spec():
    return make_task_spec()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_executor(sleeps):
    def _make(llm, **kwargs):
        return PhaseExecutor(llm, sleep=sleeps.append, **kwargs)
    return _make


@pytest.fixture
def make_engine(make_executor, nlp):
    """Build an engine around a FakeLLM. Pass critic=True to enable the critic."""
    def _make(llm=None, critic=False, store=None, **kwargs):
        llm = llm or FakeLLM()
        executor = make_executor(llm)
        return PipelineEngine(
            executor=executor,
            validator=DraftValidator(nlp=nlp),
            critic=CriticService(executor) if critic else None,
            store=store if store is not None else RecordingStore(),
            **kwargs,
        )
    return _make
