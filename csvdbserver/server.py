"""TCP server that takes commands from clients and runs them on the schema."""

from __future__ import annotations

import argparse
import socket
import sys
import threading

from csvdbserver.parser import execute
from csvdbserver.schema import Schema, create_directories_and_files, load_schema
from csvdbserver.storage import QueryError

DEFAULT_PORT = 7432
BUFFER_SIZE = 1024
BACKLOG = 4


def handle_client(conn: socket.socket, schema: Schema, lock: threading.Lock) -> None:
    """Serve one client until it disconnects or sends ``exit``.

    Every command is run under ``lock`` and then echoed back to the client.
    """
    with conn:
        while True:
            try:
                data = conn.recv(BUFFER_SIZE)
            except OSError:
                data = b""
            if not data:
                print("Client disconnected", file=sys.stderr)
                return
            command = data.decode("utf-8", errors="replace")
            with lock:
                print(f"Command received: {command}", end="")
                if "exit" in command:
                    return
                try:
                    lines = execute(schema, command)
                except (QueryError, OSError, IndexError) as error:
                    print(error, file=sys.stderr)
                else:
                    for line in lines:
                        print(line)
            conn.sendall(data)


def serve(schema: Schema, host: str = "0.0.0.0", port: int = DEFAULT_PORT) -> None:
    """Accept clients forever, each in its own thread."""
    lock = threading.Lock()
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.bind((host, port))
        server.listen(BACKLOG)
        print("Waiting for the connection...")
        while True:
            try:
                conn, _ = server.accept()
            except OSError:
                print("Connection is not established", file=sys.stderr)
                break
            print("Connection established")
            threading.Thread(
                target=handle_client, args=(conn, schema, lock), daemon=True
            ).start()


def main(argv: list[str] | None = None) -> int:
    """Load the schema, create its files and run the server."""
    parser = argparse.ArgumentParser(description="CSV database server")
    parser.add_argument("--schema", default="schema.json", help="schema description file")
    parser.add_argument("--base-dir", default=".", help="directory holding the database")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    try:
        schema = load_schema(args.schema, args.base_dir)
    except (OSError, ValueError, KeyError) as error:
        print(f"Error while opening schema file: {error}", file=sys.stderr)
        return 1
    create_directories_and_files(schema)

    print("Starting server...")
    try:
        serve(schema, args.host, args.port)
    except OSError as error:
        print(f"Could not start the server: {error}", file=sys.stderr)
        return 1
    return 0