import uuid
import pytest

API = "/api"

GOALS = f"{API}/goals"


@pytest.fixture
def make_goal(client, make_student):
    def _make_goal(estudante_id=None, **overrides):
        payload = {
            "titulo": "Ler 60 palavras por minuto",
            "descricao": "Fluência oral em textos do 2º ano",
            "criterioSucesso": "Três medições seguidas acima de 60 ppm",
            "prazo": "2025-06-30T00:00:00Z",
            "estudanteId": estudante_id or make_student()
        }
        payload.update(overrides)
        response = client.post(GOALS, json=payload)
        assert response.status_code == 201
        return response.json()
    return _make_goal


def test_create_goal_starts_not_started_with_history(make_goal):
    meta = make_goal()

    assert meta["status"] == "NAO_INICIADA"
    assert meta["progresso"] == 0
    assert meta["estudante"]["name"] == "João Pereira"
    assert meta["intervencao"] is None
    assert meta["prazo"] == "2025-06-30T00:00:00+00:00"
    assert len(meta["historico"]) == 1
    assert meta["historico"][0]["observacoes"] == "Meta criada"


def test_create_goal_linked_to_intervention(client, make_intervention, make_goal):
    intervencao = make_intervention()

    meta = make_goal(estudante_id=intervencao["studentId"], intervencaoId=intervencao["id"])

    assert meta["intervencao"] == {
        "id": intervencao["id"],
        "type": "Tutoria de leitura",
        "status": "ACTIVE"
    }


def test_create_goal_with_unknown_references(client, make_student):
    payload = {
        "titulo": "Ler 60 palavras por minuto",
        "descricao": "Fluência oral",
        "prazo": "2025-06-30T00:00:00Z",
        "estudanteId": str(uuid.uuid4())
    }
    assert client.post(GOALS, json=payload).status_code == 404

    payload.update(estudanteId=make_student(), intervencaoId=str(uuid.uuid4()))
    response = client.post(GOALS, json=payload)
    assert response.status_code == 404
    assert client.get(GOALS).json() == []


def test_progress_moves_goal_forward(client, make_goal):
    meta = make_goal()

    response = client.patch(
        f"{GOALS}/{meta['id']}/progress",
        json={"progresso": 50, "observacoes": "Leu 45 ppm"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "EM_ANDAMENTO"
    assert response.json()["progresso"] == 50

    response = client.patch(f"{GOALS}/{meta['id']}/progress", json={"progresso": 100})
    assert response.json()["status"] == "CONCLUIDA"

    historico = client.get(f"{GOALS}/{meta['id']}/history").json()
    assert len(historico) == 3
    assert sorted(h["progresso"] for h in historico) == [0, 50, 100]


def test_progress_outside_range_is_rejected(client, make_goal):
    meta = make_goal()

    assert client.patch(f"{GOALS}/{meta['id']}/progress", json={"progresso": 101}).status_code == 400
    assert client.patch(f"{GOALS}/{meta['id']}/progress", json={"progresso": -1}).status_code == 400


def test_cancelled_goal_takes_no_progress(client, make_goal):
    meta = make_goal()

    response = client.patch(f"{GOALS}/{meta['id']}/cancel", json={"observacoes": "Estudante transferido"})
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELADA"

    response = client.patch(f"{GOALS}/{meta['id']}/progress", json={"progresso": 30})
    assert response.status_code == 409
    assert client.get(f"{GOALS}/{meta['id']}").json()["progresso"] == 0


def test_cancel_without_body(client, make_goal):
    meta = make_goal()

    response = client.patch(f"{GOALS}/{meta['id']}/cancel")

    assert response.status_code == 200
    assert response.json()["status"] == "CANCELADA"


def test_list_goals_filters(client, make_student, make_intervention, make_goal):
    estudante = make_student()
    intervencao = make_intervention(estudante_id=estudante)
    ligada = make_goal(estudante_id=estudante, intervencaoId=intervencao["id"])
    andamento = make_goal(estudante_id=estudante, prazo="2025-05-31T00:00:00Z")
    client.patch(f"{GOALS}/{andamento['id']}/progress", json={"progresso": 20})
    outra = make_goal(estudante_id=make_student(name="Maria Souza"))
    client.patch(f"{GOALS}/{outra['id']}/cancel")

    do_estudante = client.get(GOALS, params={"estudanteId": estudante}).json()
    assert {m["id"] for m in do_estudante} == {ligada["id"], andamento["id"]}

    da_intervencao = client.get(GOALS, params={"intervencaoId": intervencao["id"]}).json()
    assert [m["id"] for m in da_intervencao] == [ligada["id"]]

    response = client.get(GOALS, params=[("status", "NAO_INICIADA"), ("status", "CANCELADA")])
    assert {m["id"] for m in response.json()} == {ligada["id"], outra["id"]}

    assert client.get(GOALS, params={"status": "ATRASADA"}).status_code == 400


def test_update_goal_records_history(client, make_goal):
    meta = make_goal()

    response = client.patch(f"{GOALS}/{meta['id']}", json={"titulo": "Ler 70 palavras por minuto"})

    assert response.status_code == 200
    atualizada = response.json()
    assert atualizada["titulo"] == "Ler 70 palavras por minuto"
    assert atualizada["descricao"] == meta["descricao"]
    assert len(atualizada["historico"]) == 2


def test_update_goal_rejects_null_and_unknown_intervention(client, make_goal):
    meta = make_goal()

    assert client.patch(f"{GOALS}/{meta['id']}", json={"prazo": None}).status_code == 400
    response = client.patch(f"{GOALS}/{meta['id']}", json={"intervencaoId": str(uuid.uuid4())})
    assert response.status_code == 404


def test_remove_goal_with_history(client, make_goal):
    meta = make_goal()
    client.patch(f"{GOALS}/{meta['id']}/progress", json={"progresso": 10})

    response = client.delete(f"{GOALS}/{meta['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Meta removida com sucesso"}
    assert client.get(f"{GOALS}/{meta['id']}").status_code == 404
    assert client.get(f"{GOALS}/{meta['id']}/history").status_code == 404


def test_unknown_goal(client):
    meta_id = uuid.uuid4()

    response = client.get(f"{GOALS}/{meta_id}")

    assert response.status_code == 404
    assert response.json()["message"] == f"Meta com ID {meta_id} não encontrada"
