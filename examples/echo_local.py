"""Generate Echo bindings and call them in-process.

Runs the Apache Thrift compiler and thrift-gen into a temporary directory,
imports the generated ``tchan_echo`` module, and wires its client and server
together over :class:`~thriftgen.runtime.LocalTransport`.  Needs the
``thrift`` compiler on ``PATH``.

Run::

    python examples/echo_local.py
"""

from __future__ import annotations

import importlib
import sys
import tempfile
from pathlib import Path

from thriftgen import GeneratorConfig, process_file
from thriftgen.runtime import Context, LocalTransport, ThriftClient

IDL = Path(__file__).with_name("echo.thrift")


# 1. Implement the generated TChanEcho protocol.
class EchoImpl:
    """Echoes pings and prints oneway notes."""

    def ping(self, ctx: Context, arg1: str) -> str:
        """Return *arg1* unchanged."""
        return arg1

    def fireAndForget(self, ctx: Context, arg1: str) -> None:  # noqa: N802
        """Print the note."""
        print(f"note: {arg1}")


def main() -> None:
    """Run the example."""
    with tempfile.TemporaryDirectory() as tmp:
        # 2. Generate the upstream structs and the bindings.
        out = Path(tmp) / "gen-py"
        process_file(GeneratorConfig(input_file=IDL, output_dir=out, generate_thrift=True))
        sys.path.insert(0, str(out))
        tchan_echo = importlib.import_module("echo.tchan_echo")

        # 3. Register the server and call it through the typed client.
        transport = LocalTransport()
        tchan_echo.TChanEchoServer(EchoImpl()).register(transport)
        client = tchan_echo.TChanEchoClient(ThriftClient(transport))

        ctx = Context.with_timeout(1.0)
        print(client.ping(ctx, "hello"))  # hello
        client.fireAndForget(ctx, "bye")  # note: bye


if __name__ == "__main__":
    main()
