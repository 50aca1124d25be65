from docindex.api.observability.metrics import normalize_path


def test_channel_and_key_segments_are_collapsed():
    assert normalize_path("/index/implementors") == "/index/:channel"
    assert normalize_path("/api/v1/index/sidebar/fragments") == "/api/v1/index/:channel/fragments"
    assert normalize_path("/index/implementors/keys/proc_macro2") == "/index/:channel/keys/:key"


def test_fixed_paths_are_kept():
    assert normalize_path("/index/channels") == "/index/channels"
    assert normalize_path("/health/live") == "/health/live"
    assert normalize_path("") == "/"
