from pinvault.utils.helper import ms_to_iso, new_file_id, next_available_title


def test_next_available_title_increments_until_free():
    assert next_available_title("Name", ["Name"]) == "Name (1)"
    assert next_available_title("Name", ["Name", "Name (1)", "Name (2)"]) == "Name (3)"


def test_next_available_title_continues_an_existing_suffix():
    assert next_available_title("Name (1)", ["Name", "Name (1)"]) == "Name (2)"


def test_next_available_title_keeps_parenthesised_titles_intact():
    assert next_available_title("Report (2020)", ["Report (2020)"]) == "Report (2020) (1)"


def test_new_file_id_has_timestamp_prefix():
    fid = new_file_id(255)
    assert fid.startswith("ff-")
    assert new_file_id(255) != fid


def test_ms_to_iso():
    assert ms_to_iso(0) == "1970-01-01T00:00:00Z"
