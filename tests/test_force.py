import pytest

from khatt.force import ForceSimulation


def test_bases_settle_on_targets():
    simulation = ForceSimulation()
    index = simulation.add(100, -20)
    simulation.run()
    node = simulation[index]
    assert node.x == pytest.approx(100, abs=1)
    assert node.y == pytest.approx(-20, abs=1)


def test_marks_follow_their_base():
    simulation = ForceSimulation()
    base = simulation.add(-300, 0)
    mark = simulation.add(-280, 500, is_mark=True, base=base, x_offset=20,
                          y_offset=500)
    simulation.run()
    dx, dy = simulation.mark_offset(mark)
    assert dx == pytest.approx(20, abs=1)
    assert dy == pytest.approx(500, abs=1)


def test_alpha_decays():
    simulation = ForceSimulation()
    simulation.add(0, 0)
    simulation.run(300)
    assert simulation.alpha == pytest.approx(0.001, rel=0.05)


def test_unknown_base():
    simulation = ForceSimulation()
    with pytest.raises(IndexError):
        simulation.add(0, 0, is_mark=True, base=0)


def test_clear():
    simulation = ForceSimulation()
    simulation.add(10, 10)
    simulation.run(10)
    simulation.clear()
    assert len(simulation) == 0
    assert simulation.alpha == 1
