"""
Shared automaton descriptions for the test suite.
"""

import pytest

from automaton import Automaton

FSM1 = """
-> q0 : "a" -> q1
 * q1
"""

FSM2 = """
-> q0 : "a" -> q1, "b" -> q2
   q1 : "a" -> q0, "" -> q2
 * q2 : "c" -> q2
"""

FSM3 = """
-> q0 : "a" -> q1, "b" -> q2
   q1 : "a" -> q0, "" -> q2, "c" -> q3
 * q2 : "c" -> q2
   q3 : "b" -> q2, "" -> q0
"""

NFSM1 = """
-> q0 : "" -> q1, "b" -> q2
   q1 : "a" -> q2, "c" -> q1
   q2 : "d" -> q2, "d" -> q3
 * q3 : "c" -> q0
"""

DFSM1 = """
-> q0 : "a" -> q2, "b" -> q2, "c" -> q1
q1 : "a" -> q2, "c" -> q1
q2 : "d" -> q3
* q3 : "c" -> q0, "d" -> q3
"""


@pytest.fixture
def fsm1():
    return Automaton.from_string(FSM1)


@pytest.fixture
def fsm2():
    return Automaton.from_string(FSM2)


@pytest.fixture
def fsm3():
    return Automaton.from_string(FSM3)


@pytest.fixture
def nfsm1():
    return Automaton.from_string(NFSM1)


@pytest.fixture
def dfsm1():
    return Automaton.from_string(DFSM1)
