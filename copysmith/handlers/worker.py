"""Worker handler for copy generation - triggered by SQS or HTTP."""

import json

from pydantic import ValidationError

from ..clients import JsonFileStore, LLMClient, WebhookStore
from ..config import COPYSMITH_STORE_DIR, COPYSMITH_STRICT, COPYSMITH_WEBHOOK_URL, OPENAI_API_KEY
from ..engine import PipelineEngine
from ..models import PipelineResult, RunOptions, TaskSpec
from ..services import CriticService, DraftValidator, PhaseExecutor
from ..utils import configure_logging


def build_engine(llm: LLMClient | None = None) -> PipelineEngine:
    """Wire the engine from environment config."""
    llm = llm or LLMClient(api_key=OPENAI_API_KEY)
    executor = PhaseExecutor(llm)

    store = None
    if COPYSMITH_STORE_DIR:
        store = JsonFileStore(COPYSMITH_STORE_DIR)
    elif COPYSMITH_WEBHOOK_URL:
        store = WebhookStore(COPYSMITH_WEBHOOK_URL)

    return PipelineEngine(
        executor=executor,
        validator=DraftValidator(),
        critic=CriticService(executor),
        store=store,
        strict=COPYSMITH_STRICT,
    )


def result_body(result: PipelineResult) -> dict:
    """JSON-ready summary of a finished run."""
    body = {
        "success": result.success,
        "runId": result.run_id,
        "completedPhases": list(result.artifacts.keys()),
    }
    if result.success:
        body["finalArtifact"] = result.final_artifact.model_dump(mode="json")
        body["bestEffort"] = result.best_effort
        body["unresolvedViolations"] = [v.to_dict() for v in result.unresolved_violations]
        if result.critique is not None:
            body["critique"] = result.critique.model_dump(mode="json")
    else:
        body["error"] = result.error
        body["failedPhase"] = result.failed_phase
    return body


def handler(event, context, engine: PipelineEngine | None = None):
    """
    Lambda-style handler - triggered by SQS or HTTP.

    Input payload:
    {
        "taskSpec": {...},          # TaskSpec fields
        "strict": false,            # optional, overrides COPYSMITH_STRICT
        "projectId": "acme-launch", # optional, groups stored runs
        "subtype": "launch"         # optional, picks the critic rubric
    }
    """
    # Handle SQS event format
    if "Records" in event:
        body = json.loads(event["Records"][0]["body"])
    else:
        body = json.loads(event.get("body") or "{}")

    # Validate required field
    if not body.get("taskSpec"):
        return {
            "statusCode": 400,
            "body": json.dumps({"error": "Missing 'taskSpec' field"}),
        }

    try:
        task_spec = TaskSpec.model_validate(body["taskSpec"])
    except ValidationError as e:
        return {
            "statusCode": 400,
            "body": json.dumps({"error": "Invalid taskSpec", "details": e.errors(include_url=False)}, default=str),
        }

    try:
        print(f"Processing {task_spec.copy_type} for {task_spec.channel}: {task_spec.inputs.product_or_topic}", flush=True)
        engine = engine or build_engine()
        options = RunOptions(
            strict=body.get("strict", engine.strict),
            project_id=body.get("projectId"),
            subtype=body.get("subtype"),
        )
        result = engine.run(task_spec, options)

        if result.success:
            print(f"Run {result.run_id} complete (best_effort={result.best_effort})", flush=True)
        else:
            print(f"Run {result.run_id} failed at phase {result.failed_phase}: {result.error}", flush=True)

        return {
            "statusCode": 200 if result.success else 500,
            "body": json.dumps(result_body(result)),
        }

    except Exception as e:
        print(f"ERROR: {e}", flush=True)
        return {
            "statusCode": 500,
            "body": json.dumps({"error": str(e)}),
        }


# Local testing
if __name__ == "__main__":
    import sys
    from pathlib import Path

    if len(sys.argv) < 2:
        print("Usage: python -m copysmith.handlers.worker <task_spec.json> [--stream] [--strict]")
        print()
        print("Arguments:")
        print("  task_spec.json - JSON file with TaskSpec fields")
        print("  --stream       - print server-sent events as phases run")
        print("  --strict       - fail the run when regeneration is exhausted")
        sys.exit(1)

    configure_logging()
    spec_data = json.loads(Path(sys.argv[1]).read_text(encoding="utf-8"))
    flags = set(sys.argv[2:])

    if "--stream" in flags:
        engine = build_engine()
        options = RunOptions(strict="--strict" in flags or engine.strict)
        for pipeline_event in engine.stream(TaskSpec.model_validate(spec_data), options):
            print(pipeline_event.to_sse(), end="", flush=True)
        sys.exit(0)

    test_input = {"taskSpec": spec_data}
    if "--strict" in flags:
        test_input["strict"] = True

    print("Running with input:")
    print(json.dumps(test_input, indent=2))
    print()

    result = handler({"body": json.dumps(test_input)}, None)
    print("\nResult:")
    print(json.dumps(json.loads(result["body"]), indent=2))
