async def test_create_story_fills_content_metrics(client, editor_headers):
    response = await client.post(
        "/stories",
        json={"title": "Short one", "content": "<p>One two three.</p>"},
        headers=editor_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["word_count"] == 3
    assert body["reading_time_minutes"] == 1
    assert body["reading_level"] == "beginner"


async def test_update_story_content_refreshes_metrics_and_report(client, admin_headers, editor_headers):
    created = await client.post(
        "/stories", json={"title": "Growing", "content": "One two three."}, headers=editor_headers
    )
    story_id = created.json()["id"]

    report = await client.get(f"/analytics/stories/{story_id}", headers=admin_headers)
    assert report.json()["word_count"] == 3

    updated = await client.put(
        f"/stories/{story_id}",
        json={"content": "lorem ipsum dolor sit amet. " * 120},
        headers=editor_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["word_count"] == 600
    assert updated.json()["reading_time_minutes"] == 3
    assert updated.json()["reading_level"] == "intermediate"
    assert updated.json()["title"] == "Growing"

    report = await client.get(f"/analytics/stories/{story_id}", headers=admin_headers)
    assert report.json()["word_count"] == 600


async def test_update_unknown_story(client, editor_headers):
    response = await client.put("/stories/999", json={"title": "Nope"}, headers=editor_headers)
    assert response.status_code == 404


async def test_analyze_content_with_target(client, editor_headers):
    response = await client.post(
        "/stories/analyze",
        json={"content": "The cat sat. The dog ran!", "target_words": 12},
        headers=editor_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["word_count"] == 6
    assert body["progress"]["words_remaining"] == 6
    assert body["progress"]["progress_percentage"] == 50.0


async def test_story_writes_require_editor(client):
    response = await client.post("/stories", json={"title": "x"}, headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
