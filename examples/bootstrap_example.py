#!/usr/bin/env python3
"""
tinyrt Bootstrap Example

This example shows how an application builds its runtime environment
registry at process start, the way a console entry point or a WSGI
handler would.

Installation:
    pip install -e .

Run:
    python examples/bootstrap_example.py
"""

from tinyrt import (
    DictSink,
    Environment,
    ImmutableWriteError,
    create_environment,
    set_custom_defaults,
)


def main():
    print("=" * 60)
    print("tinyrt Bootstrap Example")
    print("=" * 60)
    print()

    # 1. Custom defaults must be set before the registry is built.
    #    Keys outside the allow-list are ignored.
    set_custom_defaults({"RUNTIME_TICK_LINE": 25, "PYTHON_VERSION": "0.0.0"})

    # 2. Console bootstrap (publishes the merged view into os.environ)
    env = create_environment()
    print(f"Mode:              {env['RUNTIME_MODE'].value}")
    print(f"Tick line:         {env['RUNTIME_TICK_LINE']}")
    print(f"Python version:    {env['PYTHON_VERSION']}")
    print(f"Entries:           {env.count()}")
    print()

    # 3. Expensive entries are computed on first access only
    print(f"PID resolved yet?  {env.is_resolved('PID')}")
    print(f"PID:               {env['PID']}")
    print(f"PID resolved yet?  {env.is_resolved('PID')}")
    print(f"Memory (bytes):    {env['RUNTIME_MEMORY_SIZE']}")
    print()

    # 4. The registry is read-only
    try:
        env["RUNTIME_TICK_LINE"] = 99
    except ImmutableWriteError as e:
        print(f"Write rejected:    {e}")
    print()

    # 5. A request served over the RPC transport
    sink = DictSink()
    rpc_env = Environment(
        server={"REQUEST_METHOD": "POST", "GATEWAY_INTERFACE": "CGI/1.1"},
        request={"FRPC_METHOD": "FRPC_POST"},
        sink=sink,
    )
    print(f"Request mode:      {rpc_env.mode.value}")
    print(f"Captured entries:  {len(sink.entries)}")
    print()

    # 6. Walk the registry with the forward cursor
    print("First five entries:")
    env.rewind()
    for _ in range(5):
        if not env.valid():
            break
        print(f"  {env.key()} = {env.current()}")
        env.next()

    print()
    print("=" * 60)
    print("Example complete")
    print("=" * 60)


if __name__ == "__main__":
    main()
