#!/usr/bin/env python3
"""
End-to-end tests for ChatServer in server/main_server.py

Real TCP clients talk to a server bound to an ephemeral loopback port; the
operator console is driven through an in-memory reader and channel.
"""

import asyncio
import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from linechat.common.constants import Roles
from linechat.common.errors import BindError
from linechat.server.chat.connection_handler import ConnectionHandler, SessionState
from linechat.server.main_server import ChatServer, build_parser
from linechat.server.utils.config import ServerConfig
from tests.fakes import RecordingChannel, TestClient, make_config, wait_until


class TestChatServer(unittest.IsolatedAsyncioTestCase):
    """Test cases for the assembled server."""

    async def asyncSetUp(self):
        self.console_reader = asyncio.StreamReader()
        self.console = RecordingChannel()
        self.server = ChatServer(make_config(), self.console_reader, self.console)
        await self.server.start()
        self.port = self.server.acceptor.addresses[0][1]
        self.clients = []

    async def asyncTearDown(self):
        for client in self.clients:
            await client.close()
        if not self.server.shutdown.started:
            await self.server.shutdown.initiate(self.server.console_handler.session)
        await asyncio.wait_for(self.server.shutdown.wait(), 5)

    async def connect(self, name=None) -> TestClient:
        client = await TestClient.connect(self.port)
        self.clients.append(client)
        if name is not None:
            await client.login(name)
        return client

    def operator(self, line: str):
        self.console_reader.feed_data((line + '\n').encode('utf-8'))

    async def test_operator_is_registered(self):
        self.assertEqual(await self.server.registry.names(), ["admin"])
        self.assertIs(self.server.console_handler.state, SessionState.ACTIVE)

    async def test_operator_name_is_reserved(self):
        client = await self.connect()
        await client.expect("Please enter your name: ")
        await client.send("admin")
        await client.expect("already in use")
        await client.expect("Please enter your name: ")

    async def test_chat_between_clients(self):
        alice = await self.connect("Alice")
        bob = await self.connect("Bob")
        await alice.expect("* Bob has connected")

        await bob.send("hi Alice")

        await alice.expect("[Bob] hi Alice")
        await bob.expect("[Bob] hi Alice")
        await wait_until(lambda: "[Bob] hi Alice" in self.console.lines)

    async def test_who(self):
        alice = await self.connect("Alice")
        await self.connect("Bob")

        await alice.send("/who")
        await alice.expect("\tadmin\tAlice\tBob\n")

    async def test_user_quit(self):
        alice = await self.connect("Alice")
        bob = await self.connect("Bob")

        await bob.send("/quit")

        rest = await bob.expect_closed()
        self.assertIn("Goodbye!", rest)
        await alice.expect("* Bob has disconnected")
        self.assertEqual(await self.server.registry.names(), ["admin", "Alice"])

        await alice.send("still here")
        await alice.expect("[Alice] still here")

    async def test_abrupt_disconnect(self):
        alice = await self.connect("Alice")
        bob = await self.connect("Bob")

        await bob.close()

        await alice.expect("* Bob has disconnected")
        await wait_until(lambda: len(self.server.handlers) == 1)

    async def test_operator_kick(self):
        alice = await self.connect("Alice")
        bob = await self.connect("Bob")

        self.operator("/kick Bob")

        await alice.expect("* Bob was kicked by admin")
        await alice.expect("* Bob has disconnected")
        rest = await bob.expect_closed()
        self.assertIn("* Bob was kicked by admin", rest)
        self.assertIsNone(await self.server.registry.find_by_name("Bob"))

    async def test_operator_quit_shuts_down(self):
        alice = await self.connect("Alice")
        bob = await self.connect("Bob")
        waiting = await self.connect()
        await waiting.expect("Please enter your name: ")
        handlers = list(self.server.handlers.values())

        self.operator("/quit")

        status = await asyncio.wait_for(self.server.shutdown.wait(), 5)
        self.assertEqual(status, 0)

        self.assertIn("shutting down", await alice.expect_closed())
        self.assertIn("shutting down", await bob.expect_closed())
        await waiting.expect_closed()

        self.assertTrue(all(h.state is SessionState.CLOSED for h in handlers))
        self.assertEqual(self.server.handlers, {})
        self.assertFalse(self.server.acceptor.accepting)
        self.assertIs(self.server.console_handler.state, SessionState.CLOSED)
        self.assertTrue(any("shutting down" in line for line in self.console.lines))

        with self.assertRaises(OSError):
            await asyncio.open_connection('127.0.0.1', self.port)

    async def test_user_quit_does_not_shut_down(self):
        bob = await self.connect("Bob")
        await bob.send("/quit")
        await bob.expect_closed()

        self.assertFalse(self.server.shutdown.started)
        self.assertTrue(self.server.acceptor.accepting)

    async def test_bind_failure(self):
        other = ChatServer(make_config(port=self.port))
        with self.assertRaises(BindError):
            await other.start()

    async def test_loop_errors_are_logged_and_serving_continues(self):
        loop = asyncio.get_running_loop()
        with self.assertLogs('linechat_server', level='ERROR') as logs:
            loop.call_exception_handler({
                'message': 'socket.accept() out of system resource',
                'exception': OSError(24, 'Too many open files'),
            })
            loop.call_exception_handler({'message': 'stray callback failed'})

        self.assertIn('socket.accept() out of system resource', logs.output[0])
        self.assertIn('Too many open files', logs.output[0])
        self.assertIn('stray callback failed', logs.output[1])

        await self.connect("Alice")
        self.assertTrue(self.server.acceptor.accepting)


class TestForcedShutdown(unittest.IsolatedAsyncioTestCase):
    """Test cases for sessions that do not finish within the shutdown timeout."""

    async def test_straggler_is_aborted(self):
        server = ChatServer(make_config(shutdown_timeout=0.2), asyncio.StreamReader(), RecordingChannel())
        await server.start()
        channel = RecordingChannel(hang_on_close=True)
        session = await server.registry.insert("Slow", Roles.NORMAL, channel)
        handler = ConnectionHandler(server, asyncio.StreamReader(), channel, session=session)
        server.spawn(handler)
        await wait_until(lambda: handler.state is SessionState.ACTIVE)

        loop = asyncio.get_running_loop()
        started = loop.time()
        with self.assertLogs('linechat_server', level='WARNING') as logs:
            await server.shutdown.initiate(server.console_handler.session)
            status = await asyncio.wait_for(server.shutdown.wait(), 5)

        self.assertEqual(status, 0)
        self.assertLess(loop.time() - started, 1.5)
        self.assertTrue(any("did not close" in line for line in logs.output))
        self.assertTrue(channel.aborted)
        self.assertIs(handler.state, SessionState.CLOSED)
        self.assertTrue(handler.task.cancelled())
        self.assertEqual(server.handlers, {})
        self.assertIn("* The server is shutting down. Goodbye!", channel.lines)


class TestCommandLine(unittest.TestCase):
    """Test cases for argument parsing into ServerConfig."""

    def test_defaults(self):
        config = ServerConfig.from_args(build_parser().parse_args([]))

        self.assertEqual(config.host, '0.0.0.0')
        self.assertEqual(config.port, 6788)
        self.assertEqual(config.backlog, 5)
        self.assertEqual(config.prompt, '> ')
        self.assertEqual(config.operator_name, 'admin')
        self.assertTrue(config.color)
        self.assertTrue(config.console)

    def test_overrides(self):
        args = build_parser().parse_args([
            '--port', '7000', '--prompt', '$ ', '--operator-name', 'root',
            '--no-color', '--no-console', '--shutdown-timeout', '1.5', '--log-level', 'debug'
        ])
        config = ServerConfig.from_args(args)

        self.assertEqual(config.get_connection_info()['port'], 7000)
        self.assertEqual(config.get_session_settings(), {
            'prompt': '$ ', 'operator_name': 'root', 'console': False, 'color': False
        })
        self.assertEqual(config.get_timeouts()['shutdown_timeout'], 1.5)


if __name__ == '__main__':
    unittest.main()
