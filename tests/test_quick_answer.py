from itkit.search import extract_quick_answer


def test_ordered_list_is_numbered_in_document_order():
    html = """
    <h2>Connect to VPN</h2>
    <p>Follow these steps:</p>
    <ol class="steps">
      <li>Open the VPN client</li>
      <li>Enter your <b>credentials</b></li>
      <li>Click Connect</li>
    </ol>
    <ul><li>Ignored bullet</li></ul>
    """
    assert extract_quick_answer(html) == "1. Open the VPN client\n2. Enter your credentials\n3. Click Connect"


def test_ordered_list_is_capped_at_five_items():
    items = "".join(f"<li>Step {i}</li>" for i in range(1, 9))
    answer = extract_quick_answer(f"<ol>{items}</ol>")
    assert answer.splitlines() == [f"{i}. Step {i}" for i in range(1, 6)]


def test_unordered_list_used_when_no_ordered_list():
    html = "<p>Check these:</p><UL><li>Cable plugged in</li><li>Power light on</li></UL>"
    assert extract_quick_answer(html) == "• Cable plugged in\n• Power light on"


def test_empty_ordered_list_falls_through_to_unordered():
    html = "<ol></ol><ul><li>Only bullet</li></ul>"
    assert extract_quick_answer(html) == "• Only bullet"


def test_first_three_sentences_as_fallback():
    html = "<p>Restart the laptop. Wait a minute! Is it back? Call IT otherwise.</p>"
    assert extract_quick_answer(html) == "Restart the laptop. Wait a minute! Is it back?"


def test_no_sentence_terminator_yields_none():
    assert extract_quick_answer("<p>no punctuation here</p>") is None
    assert extract_quick_answer("") is None
    assert extract_quick_answer(None) is None


def test_list_items_wrapped_across_lines_keep_their_order():
    html = "<ol>\n<li>Open the\n    client</li>\n<li>Connect.</li>\n</ol>"
    assert extract_quick_answer(html) == "1. Open the client\n2. Connect."
