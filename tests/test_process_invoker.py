import asyncio
import json
import os
from datetime import datetime
from pathlib import Path

import pytest

from app.ai.exceptions import (
    InvocationTimeoutError,
    NonZeroExitError,
    OutputTooLargeError,
    PayloadEncodingError,
    ProcessLaunchError,
)
from app.ai.invoker import (
    NO_PAYLOAD,
    InvocationRequest,
    ProcessInvoker,
    encode_payload,
    parse_output,
)


ECHO_SCRIPT = "import sys; sys.stdout.write(sys.stdin.read())"
RAW_STDIN_SCRIPT = "import json, sys; print(json.dumps({'raw': sys.stdin.read()}))"
UTF8_RAW_STDIN_SCRIPT = (
    "import json, sys; "
    "text = sys.stdin.buffer.read().decode('utf-8'); "
    "sys.stdout.buffer.write(json.dumps({'raw': text}, ensure_ascii=False).encode('utf-8'))"
)


def test_inline_script_echoes_json_payload():
    invoker = ProcessInvoker()
    payload = {"complaint": "phishing call", "amounts": [1, 2.5], "nested": {"ok": True}}

    result = asyncio.run(invoker.run_inline(ECHO_SCRIPT, payload))

    assert result == payload


def test_non_json_stdout_degrades_to_trimmed_output():
    invoker = ProcessInvoker()

    result = asyncio.run(invoker.run_inline("print('  not json at all  ')", {}))

    assert result == {"output": "not json at all"}


def test_empty_stdout_degrades_to_empty_output():
    invoker = ProcessInvoker()

    result = asyncio.run(invoker.run_inline("pass", {}))

    assert result == {"output": ""}


def test_non_zero_exit_reports_code_and_stderr():
    invoker = ProcessInvoker()
    script = "import sys; sys.stderr.write('model crashed'); sys.exit(3)"

    with pytest.raises(NonZeroExitError) as excinfo:
        asyncio.run(invoker.run_inline(script, {}))

    error = excinfo.value
    assert error.exit_code == 3
    assert error.stderr_text == "model crashed"
    assert "3" in str(error)
    assert "model crashed" in str(error)


def test_non_zero_exit_falls_back_to_stdout_diagnostic():
    invoker = ProcessInvoker()
    script = "import sys; print('partial result'); sys.exit(2)"

    with pytest.raises(NonZeroExitError) as excinfo:
        asyncio.run(invoker.run_inline(script, {}))

    assert excinfo.value.stderr_text == ""
    assert "partial result" in str(excinfo.value)
    assert str(excinfo.value).startswith("Python exited with code 2:")


def test_string_payload_is_written_unchanged():
    invoker = ProcessInvoker()

    result = asyncio.run(invoker.run_inline(RAW_STDIN_SCRIPT, '{"query": "test"}'))

    assert result == {"raw": '{"query": "test"}'}


def test_none_payload_is_sent_as_json_null():
    invoker = ProcessInvoker()

    assert asyncio.run(invoker.run_inline(RAW_STDIN_SCRIPT, None)) == {"raw": "null"}
    assert asyncio.run(invoker.run_inline(ECHO_SCRIPT, None)) is None


def test_omitted_payload_writes_nothing():
    invoker = ProcessInvoker()

    result = asyncio.run(invoker.run_inline(RAW_STDIN_SCRIPT))

    assert result == {"raw": ""}


def test_non_ascii_payloads_round_trip():
    invoker = ProcessInvoker()
    payload = {"complaint": "पैसे चोरी हो गए", "note": "café 🚨"}
    text = "café 🚨 धोखाधड़ी"

    assert asyncio.run(invoker.run_inline(ECHO_SCRIPT, payload)) == payload
    assert asyncio.run(invoker.run_inline(UTF8_RAW_STDIN_SCRIPT, text)) == {"raw": text}


def test_large_output_written_just_before_exit_is_captured():
    invoker = ProcessInvoker()
    script = (
        "import json, os, sys; "
        "sys.stdout.write(json.dumps({'blob': 'x' * (1024 * 1024)})); "
        "sys.stdout.flush(); "
        "os._exit(0)"
    )

    result = asyncio.run(invoker.run_inline(script, {}))

    assert len(result["blob"]) == 1024 * 1024


def test_unserializable_payload_raises_encoding_error():
    invoker = ProcessInvoker()

    with pytest.raises(PayloadEncodingError) as excinfo:
        asyncio.run(invoker.run_inline(ECHO_SCRIPT, {"when": datetime(2026, 1, 1)}))

    assert isinstance(excinfo.value.original_error, TypeError)
    assert "datetime" in str(excinfo.value)


def test_null_byte_argument_raises_launch_error():
    invoker = ProcessInvoker()

    with pytest.raises(ProcessLaunchError) as excinfo:
        asyncio.run(invoker.run_script("extractor.py", "a\x00.pdf"))

    assert isinstance(excinfo.value.original_error, ValueError)


def test_spawn_options_may_override_stdio():
    invoker = ProcessInvoker()
    script = "import sys; sys.stderr.write('diagnostic'); sys.exit(1)"

    with pytest.raises(NonZeroExitError) as excinfo:
        asyncio.run(invoker.run_inline(script, {}, stderr=asyncio.subprocess.STDOUT))

    assert excinfo.value.stderr_text == ""
    assert excinfo.value.stdout_text == "diagnostic"


def test_path_script_receives_positional_argument(tmp_path: Path):
    script = tmp_path / "extractor.py"
    script.write_text(
        "\n".join(
            [
                "import json, sys",
                "json.dump({'argv': sys.argv[1:]}, sys.stdout)",
            ]
        ),
        encoding="utf-8",
    )
    invoker = ProcessInvoker()

    result = asyncio.run(invoker.run_script(str(script), "evidence.pdf"))

    assert result == {"argv": ["evidence.pdf"]}


def test_path_script_uses_custom_fallback_key(tmp_path: Path):
    script = tmp_path / "plain.py"
    script.write_text("print('scanned text\\n')\n", encoding="utf-8")
    invoker = ProcessInvoker()

    result = asyncio.run(invoker.run_script(str(script), "scan.png", fallback_key="text"))

    assert result == {"text": "scanned text"}


def test_spawn_options_are_forwarded(tmp_path: Path):
    invoker = ProcessInvoker()
    script = (
        "import json, os; "
        "print(json.dumps({'cwd': os.getcwd(), 'token': os.environ.get('AI_BRIDGE_TOKEN')}))"
    )
    env = {**os.environ, "AI_BRIDGE_TOKEN": "abc"}

    result = asyncio.run(invoker.run_inline(script, {}, cwd=str(tmp_path), env=env))

    assert Path(result["cwd"]).resolve() == tmp_path.resolve()
    assert result["token"] == "abc"


def test_extra_args_follow_inline_script():
    request = InvocationRequest(script="pass", args=("models", "0.5"))

    assert request.command("python") == ["python", "-c", "pass", "models", "0.5"]
    assert InvocationRequest(script="run.py", inline=False, args=("a",)).command(
        "python"
    ) == ["python", "run.py", "a"]


def test_child_ignoring_stdin_still_succeeds():
    invoker = ProcessInvoker()
    payload = {"blob": "x" * (1024 * 1024)}

    result = asyncio.run(invoker.run_inline("print('{\"ok\": true}')", payload))

    assert result == {"ok": True}


def test_timeout_kills_process():
    invoker = ProcessInvoker(timeout=0.5)

    with pytest.raises(InvocationTimeoutError) as excinfo:
        asyncio.run(invoker.run_inline("import time; time.sleep(30)", {}))

    assert excinfo.value.timeout == 0.5
    assert "timed out" in str(excinfo.value)


def test_output_limit_is_enforced():
    invoker = ProcessInvoker(max_output_bytes=1024)

    with pytest.raises(OutputTooLargeError) as excinfo:
        asyncio.run(invoker.run_inline("print('x' * 100000)", {}))

    assert excinfo.value.stream == "stdout"
    assert excinfo.value.limit == 1024


def test_missing_executable_raises_launch_error(tmp_path: Path):
    invoker = ProcessInvoker(executable=str(tmp_path / "no-such-python"))

    with pytest.raises(ProcessLaunchError) as excinfo:
        asyncio.run(invoker.run_inline("pass", {}))

    assert isinstance(excinfo.value.original_error, OSError)


def test_cancellation_propagates():
    invoker = ProcessInvoker()

    async def scenario():
        task = asyncio.ensure_future(invoker.run_inline("import time; time.sleep(30)", {}))
        await asyncio.sleep(0.3)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())


def test_repeated_invocations_are_independent():
    invoker = ProcessInvoker()
    payload = {"items": [1, 2, 3]}

    first = asyncio.run(invoker.run_inline(ECHO_SCRIPT, payload))
    second = asyncio.run(invoker.run_inline(ECHO_SCRIPT, payload))

    assert first == second == payload
    assert first is not second
    first["items"].append(4)
    assert second == payload


def test_concurrent_invocations_do_not_mix_results():
    invoker = ProcessInvoker()

    async def scenario():
        return await asyncio.gather(
            *(invoker.run_inline(ECHO_SCRIPT, {"n": n}) for n in range(5))
        )

    results = asyncio.run(scenario())

    assert results == [{"n": n} for n in range(5)]


def test_encode_payload_and_parse_output_helpers():
    assert encode_payload(NO_PAYLOAD) == b""
    assert encode_payload(None) == b"null"
    assert encode_payload("raw text") == b"raw text"
    assert json.loads(encode_payload({"a": [1]})) == {"a": [1]}
    assert parse_output("[1, 2]") == [1, 2]
    assert parse_output(" plain \n", "text") == {"text": "plain"}
