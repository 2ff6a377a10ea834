from circulation.errors import CirculationError, Conflict, InvalidState, NotFound, Unavailable


def test_error_status_codes():
    assert NotFound("x").status_code == 404
    assert Unavailable("x").status_code == 409
    assert Conflict("x").status_code == 409
    assert InvalidState("x").status_code == 400


def test_error_code_override_and_payload():
    err = Conflict("This book has already been returned", code="already_returned")

    assert isinstance(err, CirculationError)
    assert str(err) == "This book has already been returned"
    assert err.to_dict() == {"error": "already_returned", "message": "This book has already been returned"}
    assert Conflict("x").code == "conflict"
