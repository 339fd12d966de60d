from notes_summarizer.services.fallback import (
    KeyPhrase,
    SummaryMode,
    classify_instruction,
    extract_key_phrases,
    split_sentences,
    summarize_fallback,
)


def _body(output: str, instruction: str) -> str:
    prefix = f'Summary based on: "{instruction}"\n\n'
    assert output.startswith(prefix)
    return output[len(prefix):]


def test_classify_instruction_modes():
    assert classify_instruction("Summarize as BULLET list") is SummaryMode.BULLETED
    assert classify_instruction("key points please") is SummaryMode.BULLETED
    assert classify_instruction("List the Action items") is SummaryMode.ACTION_ITEMS
    assert classify_instruction("Give an overview") is SummaryMode.NARRATIVE


def test_bullet_keywords_take_precedence_over_action():
    assert classify_instruction("action items as bullet points") is SummaryMode.BULLETED


def test_split_sentences_drops_short_fragments_and_keeps_order():
    text = "Short one. This sentence is long enough!!! Ok? Another sentence that stays?"
    assert split_sentences(text) == ["This sentence is long enough", "Another sentence that stays"]


def test_narrative_joins_first_three_sentences():
    instruction = "Give an overview"
    out = summarize_fallback(
        "This is sentence one. This is sentence two! Is this sentence three?", instruction
    )
    assert _body(out, instruction) == (
        "This is sentence one. This is sentence two. Is this sentence three."
    )


def test_narrative_caps_at_three_sentences():
    text = "First sentence here. Second sentence here. Third sentence here. Fourth sentence here."
    body = _body(summarize_fallback(text, "Recap"), "Recap")
    assert "Fourth" not in body
    assert body.endswith("Third sentence here.")


def test_narrative_without_sentences_is_just_a_period():
    assert _body(summarize_fallback("hello", "Overview"), "Overview") == "."


def test_bulleted_ranks_by_frequency():
    instruction = "List key bullet points"
    out = summarize_fallback("meeting meeting project project project deadline", instruction)
    assert _body(out, instruction) == "• project\n• meeting\n• deadline"


def test_bulleted_has_at_most_five_items():
    text = "alpha bravo charlie delta echoes foxtrot golfer hotel"
    body = _body(summarize_fallback(text, "bullet summary"), "bullet summary")
    lines = body.splitlines()
    assert len(lines) == 5
    assert all(line.startswith("• ") for line in lines)


def test_bulleted_with_no_key_phrases_has_empty_body():
    instruction = "Use bullets"
    out = summarize_fallback("the cat and the dog run", instruction)
    assert out == 'Summary based on: "Use bullets"\n\n'
    assert "•" not in out


def test_action_items_filters_sentences():
    text = (
        "Alice will send the report by Friday. "
        "We reviewed last quarter's numbers. "
        "Bob said we NEED TO hire another engineer. "
        "The vendor must sign the contract first."
    )
    instruction = "Extract action items"
    body = _body(summarize_fallback(text, instruction), instruction)
    assert body == (
        "Action Items:\n"
        "• Alice will send the report by Friday\n"
        "• Bob said we NEED TO hire another engineer\n"
        "• The vendor must sign the contract first"
    )


def test_action_items_caps_at_five():
    text = " ".join(f"Person {i} should finish task number {i}." for i in range(8))
    body = _body(summarize_fallback(text, "actions"), "actions")
    assert body.count("\n• ") == 5


def test_action_items_without_matches_keeps_heading_only():
    text = "The team reviewed the budget. Everyone agreed on the plan."
    instruction = "List the action items"
    out = summarize_fallback(text, instruction)
    assert _body(out, instruction) == "Action Items:"


def test_key_phrases_exclude_stopwords_and_short_tokens():
    phrases = extract_key_phrases("The cat would have been there, and could have been fine. Should it?")
    texts = [p.text for p in phrases]
    assert texts == ["there", "fine"]


def test_key_phrase_ties_keep_first_seen_order():
    phrases = extract_key_phrases("alpha beta gamma beta alpha delta")
    assert phrases == [
        KeyPhrase("alpha", 2),
        KeyPhrase("beta", 2),
        KeyPhrase("gamma", 1),
        KeyPhrase("delta", 1),
    ]


def test_key_phrases_capped_at_ten():
    words = "apple banana cherry damson elder figgy grape hazel iceberg juniper kiwis lemon"
    assert len(extract_key_phrases(words)) == 10


def test_output_is_deterministic_and_keeps_instruction_verbatim():
    instruction = 'Summarize "quickly", then list POINTS'
    text = "Roadmap review went long. Deadline moved to March. Roadmap owners will update docs."
    first = summarize_fallback(text, instruction)
    assert first == summarize_fallback(text, instruction)
    assert first.startswith(f'Summary based on: "{instruction}"')
