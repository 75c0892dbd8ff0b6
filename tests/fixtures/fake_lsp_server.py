#!/usr/bin/env python3
"""
Minimal language server used by the test suite.

Connects over the transport named by the trailing --stdio, --pipe=PATH or
--socket=PORT flag. Behaviour switches:

    --log=PATH                 append every received method to PATH
    --reject-initialize        answer initialize with an error
    --invalid-initialize       answer initialize without capabilities
    --no-initialize-response   never answer initialize
    --initialize-delay=SECS    wait before answering initialize
    --crash-on=METHOD          exit abruptly when METHOD arrives
    --unknown-response         send a response with an id nobody asked for
    --garbage-frame            send a frame whose body is not JSON
    --ask-configuration        ask the client for workspace/configuration
"""

import json
import os
import socket
import sys
import time


def parse_options(argv):
    options = {
        "transport": None,
        "log": None,
        "crash_on": None,
        "initialize_delay": 0.0,
        "flags": set(),
    }
    for arg in argv:
        if arg == "--stdio":
            options["transport"] = ("stdio", None)
        elif arg.startswith("--pipe="):
            options["transport"] = ("pipe", arg.split("=", 1)[1])
        elif arg.startswith("--socket="):
            options["transport"] = ("socket", int(arg.split("=", 1)[1]))
        elif arg.startswith("--log="):
            options["log"] = arg.split("=", 1)[1]
        elif arg.startswith("--crash-on="):
            options["crash_on"] = arg.split("=", 1)[1]
        elif arg.startswith("--initialize-delay="):
            options["initialize_delay"] = float(arg.split("=", 1)[1])
        elif arg.startswith("--"):
            options["flags"].add(arg[2:])
    return options


def connect(transport):
    kind, address = transport
    if kind == "stdio":
        return sys.stdin.buffer, sys.stdout.buffer
    if kind == "pipe":
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.connect(address)
    else:
        sock = socket.create_connection(("127.0.0.1", address))
    return sock.makefile("rb"), sock.makefile("wb")


class FakeServer:
    def __init__(self, reader, writer, options):
        self.reader = reader
        self.writer = writer
        self.options = options
        self.flags = options["flags"]

    def record(self, entry):
        if self.options["log"]:
            with open(self.options["log"], "a", encoding="utf-8") as f:
                f.write(entry + "\n")

    def read(self):
        headers = {}
        while True:
            line = self.reader.readline()
            if not line:
                return None
            line = line.strip()
            if not line:
                if headers:
                    break
                continue
            key, value = line.split(b":", 1)
            headers[key.strip().lower()] = value.strip()
        length = int(headers[b"content-length"])
        body = self.reader.read(length)
        if len(body) < length:
            return None
        return json.loads(body.decode("utf-8"))

    def write_raw(self, data):
        self.writer.write(data)
        self.writer.flush()

    def write(self, message):
        body = json.dumps(message).encode("utf-8")
        self.write_raw(b"Content-Length: %d\r\n\r\n" % len(body) + body)

    def respond(self, msg_id, result=None, error=None):
        message = {"jsonrpc": "2.0", "id": msg_id}
        if error is not None:
            message["error"] = error
        else:
            message["result"] = result
        self.write(message)

    def publish_diagnostics(self, document):
        diagnostics = []
        if "error" in document.get("text", ""):
            diagnostics.append(
                {
                    "range": {
                        "start": {"line": 0, "character": 0},
                        "end": {"line": 0, "character": 5},
                    },
                    "severity": 1,
                    "message": "found error",
                }
            )
        self.write(
            {
                "jsonrpc": "2.0",
                "method": "textDocument/publishDiagnostics",
                "params": {"uri": document["uri"], "diagnostics": diagnostics},
            }
        )

    def handle_initialize(self, msg_id):
        if "no-initialize-response" in self.flags:
            return
        if self.options["initialize_delay"]:
            time.sleep(self.options["initialize_delay"])
        if "reject-initialize" in self.flags:
            self.respond(msg_id, error={"code": -32002, "message": "not today"})
        elif "invalid-initialize" in self.flags:
            self.respond(msg_id, result={"serverInfo": {"name": "fake-lsp"}})
        else:
            self.respond(
                msg_id,
                result={
                    "capabilities": {"textDocumentSync": 1, "hoverProvider": True},
                    "serverInfo": {"name": "fake-lsp", "version": "0.1"},
                },
            )

    def handle_initialized(self):
        if "ask-configuration" in self.flags:
            self.write(
                {
                    "jsonrpc": "2.0",
                    "id": "cfg-1",
                    "method": "workspace/configuration",
                    "params": {"items": [{"section": "a"}, {"section": "b"}]},
                }
            )
        if "unknown-response" in self.flags:
            self.respond(9999, result=None)
        if "garbage-frame" in self.flags:
            self.write_raw(b"Content-Length: 5\r\n\r\n{oops")

    def run(self):
        while True:
            message = self.read()
            if message is None:
                return 0

            method = message.get("method")
            msg_id = message.get("id")
            if method is None:
                self.record(f"response:{msg_id}:{json.dumps(message.get('result'))}")
                continue

            self.record(method)
            if method == self.options["crash_on"]:
                os._exit(3)

            params = message.get("params") or {}
            if method == "initialize":
                self.handle_initialize(msg_id)
            elif method == "initialized":
                self.handle_initialized()
            elif method in ("textDocument/didOpen", "textDocument/didChange"):
                document = dict(params["textDocument"])
                if method == "textDocument/didChange":
                    document["text"] = params["contentChanges"][-1]["text"]
                self.publish_diagnostics(document)
            elif method == "test/echo":
                self.respond(msg_id, result=params)
            elif method == "test/fail":
                self.respond(msg_id, error={"code": -32000, "message": "boom"})
            elif method == "test/hang":
                pass
            elif method == "shutdown":
                self.respond(msg_id, result=None)
            elif method == "exit":
                return 0
            elif msg_id is not None:
                self.respond(
                    msg_id, error={"code": -32601, "message": f"Unknown method {method}"}
                )


def main():
    options = parse_options(sys.argv[1:])
    if options["transport"] is None:
        sys.stderr.write("fake_lsp_server: no transport flag given\n")
        return 2
    reader, writer = connect(options["transport"])
    sys.stderr.write("fake_lsp_server: connected\n")
    sys.stderr.flush()
    return FakeServer(reader, writer, options).run()


if __name__ == "__main__":
    sys.exit(main())
