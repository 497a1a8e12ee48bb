import numpy as np
import pytest

from picardcheby.egm2008 import GravityField
from picardcheby.integrator import adaptive_picard_chebyshev, main
from picardcheby.kepler import f_and_g
from picardcheby.perturbed_gravity import EvaluationCounter

R0 = [7000.0, 0.0, 0.0]
V0 = [0.0, 8.003798178945150, 0.0]
TOL = 1e-9
C20 = -4.841651437908150e-04


def _field():
    c = np.zeros((3, 3))
    c[2, 0] = C20
    return GravityField(c, np.zeros((3, 3)))


@pytest.fixture(scope="module")
def run():
    r0 = np.array(R0)
    v0 = np.array(V0)
    counter = EvaluationCounter()
    solution = adaptive_picard_chebyshev(r0, v0, 0.0, 600.0, 60.0, _field(), 2.0, TOL, counter)
    return r0, v0, counter, solution


def test_solution_shape(run):
    _, _, _, solution = run
    assert solution.shape == (11, 6)


def test_starts_at_initial_state(run):
    _, _, _, solution = run
    np.testing.assert_allclose(solution[0, :3], R0, atol=1e-6)
    np.testing.assert_allclose(solution[0, 3:], V0, atol=1e-9)


def test_close_to_two_body_but_perturbed(run):
    _, _, _, solution = run
    kepler = f_and_g(np.array(R0 + V0), 600.0)
    difference = np.linalg.norm(solution[-1, :3] - kepler[:3])
    assert 0.01 < difference < 20.0


def test_inputs_untouched_and_evaluations_counted(run):
    r0, v0, counter, _ = run
    np.testing.assert_array_equal(r0, R0)
    np.testing.assert_array_equal(v0, V0)
    assert counter.full > 0.0
    assert counter.approx > 0.0


def test_rejects_non_positive_step():
    with pytest.raises(ValueError):
        adaptive_picard_chebyshev(R0, V0, 0.0, 600.0, 0.0, _field(), 2.0, TOL)


def test_rejects_hyperbolic_orbit():
    with pytest.raises(ValueError):
        adaptive_picard_chebyshev(R0, [0.0, 20.0, 0.0], 0.0, 600.0, 60.0, _field(), 2.0, TOL)


def test_main_writes_output(tmp_path, capsys):
    coefficients = tmp_path / "field.txt"
    coefficients.write_text(f"2 0 {C20!r} 0.0\n", encoding="utf-8")
    output = tmp_path / "out.txt"
    code = main([
        str(coefficients),
        "--tf", "600",
        "--dt", "60",
        "--degree", "2",
        "--tol", "1e-9",
        "--output", str(output),
    ])
    assert code == 0
    lines = output.read_text(encoding="utf-8").split("\n")
    assert len(lines) == 11
    rows = [[float(value) for value in line.split("\t") if value] for line in lines]
    assert all(len(row) == 8 for row in rows)
    assert rows[0][0] == 0.0
    assert rows[0][1] == pytest.approx(7000.0, abs=1e-6)
    assert rows[-1][0] == pytest.approx(600.0)
    assert max(row[7] for row in rows) < 1e-4
    printed = capsys.readouterr().out
    assert "Func Evals:" in printed
    assert "Hmax" in printed


def test_main_rejects_malformed_coefficients(tmp_path):
    coefficients = tmp_path / "field.txt"
    coefficients.write_text("2 0 1.0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        main([str(coefficients), "--output", str(tmp_path / "out.txt")])